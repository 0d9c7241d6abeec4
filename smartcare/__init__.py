"""
SmartCare Connect

FastAPI service for healthcare appointments: patients book with approved
doctors, doctors approve and complete visits with notes and attachments,
caregivers help patients track daily vitals, and admins vet doctors.
"""

__version__ = "1.0.0"
