from types import SimpleNamespace

import pytest

from smartcare.core.access import (
    AccessState, evaluate_access, allowed_roles_for_path, resolve_path
)
from smartcare.core.security import UserRole

def fake_user(role, profile_completed=True, approved=True, blocked=False):
    return SimpleNamespace(
        role=role,
        profile_completed=profile_completed,
        approved=approved,
        blocked=blocked,
    )

class TestEvaluateAccess:

    def test_no_user_is_sent_to_login(self):
        decision = evaluate_access(None, [UserRole.PATIENT])
        assert decision.state == AccessState.UNAUTHENTICATED
        assert decision.redirect == "/login"
        assert not decision.authorized

    def test_blocked_user_is_treated_as_signed_out(self):
        decision = evaluate_access(fake_user(UserRole.PATIENT, blocked=True), [UserRole.PATIENT])
        assert decision.state == AccessState.UNAUTHENTICATED

    def test_wrong_role(self):
        decision = evaluate_access(fake_user(UserRole.PATIENT), [UserRole.DOCTOR])
        assert decision.state == AccessState.ROLE_MISMATCH
        assert decision.redirect == "/403"

    def test_missing_role_is_not_a_mismatch(self):
        decision = evaluate_access(fake_user(None), [UserRole.DOCTOR])
        assert decision.state == AccessState.AUTHORIZED

    def test_incomplete_profile(self):
        decision = evaluate_access(fake_user(UserRole.CAREGIVER, profile_completed=False), [UserRole.CAREGIVER])
        assert decision.state == AccessState.PROFILE_INCOMPLETE
        assert decision.redirect == "/setup-profile"

    def test_admin_skips_profile_check(self):
        decision = evaluate_access(fake_user(UserRole.ADMIN, profile_completed=False), [UserRole.ADMIN])
        assert decision.authorized

    def test_unapproved_doctor(self):
        decision = evaluate_access(fake_user(UserRole.DOCTOR, approved=False), [UserRole.DOCTOR])
        assert decision.state == AccessState.PENDING_APPROVAL
        assert decision.redirect == "/awaiting-approval"

    def test_profile_check_precedes_approval(self):
        user = fake_user(UserRole.DOCTOR, profile_completed=False, approved=False)
        assert evaluate_access(user, [UserRole.DOCTOR]).state == AccessState.PROFILE_INCOMPLETE

    def test_role_check_precedes_profile(self):
        user = fake_user(UserRole.DOCTOR, profile_completed=False, approved=False)
        assert evaluate_access(user, [UserRole.PATIENT]).state == AccessState.ROLE_MISMATCH

    def test_approval_only_applies_to_doctors(self):
        user = fake_user(UserRole.PATIENT, approved=False)
        assert evaluate_access(user, [UserRole.PATIENT]).authorized

    @pytest.mark.parametrize("role", list(UserRole))
    def test_complete_user_with_matching_role_is_authorized(self, role):
        decision = evaluate_access(fake_user(role), [role])
        assert decision.state == AccessState.AUTHORIZED
        assert decision.redirect is None

class TestPathRules:

    @pytest.mark.parametrize("path", ["/", "/login", "/doctor/register", "/setup-profile", "/awaiting-approval", "/403"])
    def test_public_paths_are_unguarded(self, path):
        assert allowed_roles_for_path(path) is None
        assert resolve_path(None, path).authorized

    @pytest.mark.parametrize("path,role", [
        ("/patient/dashboard", UserRole.PATIENT),
        ("/doctor/appointments/12", UserRole.DOCTOR),
        ("/caregiver", UserRole.CAREGIVER),
        ("/admin/users", UserRole.ADMIN),
    ])
    def test_role_prefixes(self, path, role):
        assert allowed_roles_for_path(path) == [role]

    def test_prefix_must_match_a_whole_segment(self):
        assert allowed_roles_for_path("/doctors") is None

    @pytest.mark.parametrize("path", ["/doctor/dashboard", "/doctor/appointments", "/doctor/patients/3"])
    def test_unapproved_doctor_redirected_on_every_doctor_page(self, path):
        user = fake_user(UserRole.DOCTOR, approved=False)
        decision = resolve_path(user, path)
        assert decision.redirect == "/awaiting-approval"

class TestResolveEndpoint:

    def test_anonymous(self, client, test_db):
        response = client.get("/api/v1/access/resolve", params={"path": "/patient/dashboard"})
        assert response.status_code == 200
        assert response.json() == {
            "path": "/patient/dashboard",
            "state": "unauthenticated",
            "redirect": "/login",
        }

    def test_public_path(self, client, test_db):
        response = client.get("/api/v1/access/resolve", params={"path": "/login"})
        assert response.json()["state"] == "authorized"

    def test_role_mismatch(self, client, patient):
        _, headers = patient
        response = client.get(
            "/api/v1/access/resolve",
            params={"path": "/admin/dashboard"},
            headers=headers
        )
        assert response.json()["state"] == "role-mismatch"
        assert response.json()["redirect"] == "/403"

    def test_unapproved_doctor(self, client, make_user):
        _, headers = make_user("newdoc@example.com", UserRole.DOCTOR, approved=False)
        response = client.get(
            "/api/v1/access/resolve",
            params={"path": "/doctor/dashboard"},
            headers=headers
        )
        assert response.json()["state"] == "pending-approval"
        assert response.json()["redirect"] == "/awaiting-approval"

    def test_authorized(self, client, caregiver):
        _, headers = caregiver
        response = client.get(
            "/api/v1/access/resolve",
            params={"path": "/caregiver/patients"},
            headers=headers
        )
        assert response.json()["state"] == "authorized"
        assert response.json()["redirect"] is None

class TestApiGuard:

    def test_unapproved_doctor_blocked_from_api(self, client, make_user):
        _, headers = make_user("newdoc@example.com", UserRole.DOCTOR, approved=False)

        response = client.get("/api/v1/appointments/mine", headers=headers)
        assert response.status_code == 403
        assert response.json()["detail"] == {
            "state": "pending-approval",
            "redirect": "/awaiting-approval",
        }

    def test_incomplete_profile_blocked_from_api(self, client, make_user):
        _, headers = make_user("fresh@example.com", UserRole.PATIENT, profile_completed=False)

        response = client.get("/api/v1/appointments/mine", headers=headers)
        assert response.status_code == 403
        assert response.json()["detail"]["redirect"] == "/setup-profile"

    def test_wrong_role_blocked_from_admin_api(self, client, patient):
        _, headers = patient

        response = client.get("/api/v1/admin/stats", headers=headers)
        assert response.status_code == 403
        assert response.json()["detail"]["state"] == "role-mismatch"

    def test_blocked_user_rejected(self, client, make_user):
        _, headers = make_user("gone@example.com", UserRole.PATIENT, blocked=True)

        response = client.get("/api/v1/appointments/mine", headers=headers)
        assert response.status_code == 401
        assert response.json()["detail"] == {"state": "unauthenticated", "redirect": "/login"}

    def test_anonymous_request_sent_to_login(self, client, test_db):
        response = client.get("/api/v1/appointments/mine")
        assert response.status_code == 401
        assert response.json()["detail"] == {"state": "unauthenticated", "redirect": "/login"}

    def test_invalid_token_sent_to_login(self, client, test_db):
        response = client.get(
            "/api/v1/admin/stats",
            headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401
        assert response.json()["detail"]["state"] == "unauthenticated"
