"""
End-to-end HTTP flow: phase toggles, assignment, scoring, blind results.

Requests carry JWT bearer tokens; roles come from the token claims.
"""

from decimal import Decimal

import pytest

from tests import factories

ADMIN = ("admin", "admin-1")


class TestHealth:
    def test_ready_without_token(self, client):
        res = client.get("/api/v1/health")
        assert res.status_code == 200
        assert res.get_json()["status"] == "ok"

    def test_live_reports_phase(self, client):
        res = client.get("/api/v1/health/live")
        assert res.status_code == 200
        assert res.get_json()["checks"]["phase"] == "CLOSED"


class TestAuthGuards:
    def test_missing_token_is_401(self, client):
        res = client.get("/api/v1/system-config/toggles")
        assert res.status_code == 401
        assert res.get_json()["code"] == "ERR_UNAUTHORIZED"

    def test_garbage_token_is_401(self, client):
        res = client.get("/api/v1/system-config/toggles", headers={"Authorization": "Bearer abc"})
        assert res.status_code == 401

    def test_wrong_role_is_403(self, client, auth_headers):
        res = client.put(
            "/api/v1/system-config/toggles/reviewEnabled",
            json={"enabled": True},
            headers=auth_headers("reviewer", "rev-1"),
        )
        assert res.status_code == 403
        assert res.get_json()["code"] == "ERR_FORBIDDEN"

    def test_non_json_body_is_415(self, client, auth_headers):
        res = client.put(
            "/api/v1/system-config/toggles/reviewEnabled",
            data="enabled=1",
            content_type="text/plain",
            headers=auth_headers(*ADMIN),
        )
        assert res.status_code == 415


class TestToggleEndpoints:
    def test_enabling_one_disables_others(self, client, auth_headers):
        admin = auth_headers(*ADMIN)
        client.put("/api/v1/system-config/toggles/uploadProposalEnabled", json={"enabled": True}, headers=admin)
        res = client.put("/api/v1/system-config/toggles/reviewEnabled", json={"enabled": True}, headers=admin)

        assert res.status_code == 200
        body = res.get_json()
        assert body["toggles"] == {
            "uploadProposalEnabled": False,
            "reviewEnabled": True,
            "uploadRevisionEnabled": False,
        }
        assert body["phase"] == "REVIEW"

    def test_unknown_key_is_400(self, client, auth_headers):
        res = client.put(
            "/api/v1/system-config/toggles/grandFinale",
            json={"enabled": True},
            headers=auth_headers(*ADMIN),
        )
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_non_boolean_is_400(self, client, auth_headers):
        res = client.put(
            "/api/v1/system-config/toggles/reviewEnabled",
            json={"enabled": "yes"},
            headers=auth_headers(*ADMIN),
        )
        assert res.status_code == 400


class TestReviewFlow:
    def test_full_cycle(self, client, auth_headers, world):
        admin = auth_headers(*ADMIN)
        rev1 = auth_headers("reviewer", "rev-1")
        rev2 = auth_headers("reviewer", "rev-2")
        student = auth_headers("mahasiswa", "mhs-1")
        proposal_id = world.proposal.id
        factories.set_status(world.proposal, "submitted")

        # Assign
        res = client.post(
            "/api/v1/reviewer-assignments",
            json={"proposal_id": proposal_id, "reviewer_ids": [world.reviewer_1.id, world.reviewer_2.id]},
            headers=admin,
        )
        assert res.status_code == 201
        a1, a2 = (row["id"] for row in res.get_json())

        # Second assignment for the same proposal conflicts
        res = client.post(
            "/api/v1/reviewer-assignments",
            json={"proposal_id": proposal_id, "reviewer_ids": [world.reviewer_1.id, world.reviewer_2.id]},
            headers=admin,
        )
        assert res.status_code == 409

        # Scoring before the review phase opens is rejected
        c3 = world.kriteria_adm[2]
        res = client.post(
            f"/api/v1/reviews/{a1}/administrasi",
            json={"checklist": factories.checklist(world.kriteria_adm, {c3.id})},
            headers=rev1,
        )
        assert res.status_code == 400

        # Open review: submitted → under_review
        client.put("/api/v1/system-config/toggles/reviewEnabled", json={"enabled": True}, headers=admin)
        res = client.get(f"/api/v1/proposals/{proposal_id}", headers=student)
        assert res.get_json()["status"] == "under_review"

        # Reviewer 2 cannot score reviewer 1's assignment
        res = client.post(
            f"/api/v1/reviews/{a1}/administrasi",
            json={"checklist": factories.checklist(world.kriteria_adm)},
            headers=rev2,
        )
        assert res.status_code == 403

        res = client.post(
            f"/api/v1/reviews/{a1}/administrasi",
            json={"checklist": factories.checklist(world.kriteria_adm, {c3.id})},
            headers=rev1,
        )
        assert res.status_code == 201
        assert res.get_json()["total_kesalahan"] == 1

        res = client.post(
            f"/api/v1/reviews/{a1}/substansi",
            json={"scores": factories.scores(world.kriteria_sub, [6, 5])},
            headers=rev1,
        )
        assert res.status_code == 201
        assert Decimal(res.get_json()["total_skor"]) == Decimal(270)

        # Skipped score 4 is rejected with 400
        res = client.post(
            f"/api/v1/reviews/{a2}/substansi",
            json={"scores": factories.scores(world.kriteria_sub, [4, 5])},
            headers=rev2,
        )
        assert res.status_code == 400

        client.post(
            f"/api/v1/reviews/{a2}/administrasi",
            json={"checklist": factories.checklist(world.kriteria_adm)},
            headers=rev2,
        )
        client.post(
            f"/api/v1/reviews/{a2}/substansi",
            json={"scores": factories.scores(world.kriteria_sub, [7, 7])},
            headers=rev2,
        )

        # Reviewer 2 only sees their own entry while reviewing
        res = client.get(f"/api/v1/reviews/proposal/{proposal_id}/summary", headers=rev2)
        reviews = res.get_json()["reviews"]
        assert [r["reviewer_number"] for r in reviews] == [2]

        # Students see nothing until release
        res = client.get(f"/api/v1/reviews/proposal/{proposal_id}/summary", headers=student)
        assert res.get_json()["reviews"] == []
        res = client.get(f"/api/v1/reviews/proposal/{proposal_id}/errors", headers=student)
        assert res.status_code == 403

        # Close review: under_review → reviewed with averaged scores
        res = client.put("/api/v1/system-config/toggles/reviewEnabled", json={"enabled": False}, headers=admin)
        assert res.get_json()["phase"] == "CLOSED"

        res = client.get(f"/api/v1/reviews/proposal/{proposal_id}/summary", headers=student)
        body = res.get_json()
        assert body["status"] == "reviewed"
        assert Decimal(body["administratif_score"]) == Decimal("0.5")
        assert Decimal(body["substantif_score"]) == Decimal(310)
        assert all("reviewer_nama" not in r for r in body["reviews"])

        res = client.get(f"/api/v1/reviews/proposal/{proposal_id}/errors", headers=student)
        assert res.status_code == 200
        assert res.get_json()["total"] == 1

        # Open revision: reviewed → needs_revision
        client.put("/api/v1/system-config/toggles/uploadRevisionEnabled", json={"enabled": True}, headers=admin)
        res = client.get(f"/api/v1/proposals/{proposal_id}", headers=admin)
        assert res.get_json()["status"] == "needs_revision"

    def test_unscored_proposal_becomes_not_reviewed(self, client, auth_headers, world):
        admin = auth_headers(*ADMIN)
        factories.set_status(world.proposal, "submitted")
        client.put("/api/v1/system-config/toggles/reviewEnabled", json={"enabled": True}, headers=admin)
        client.put("/api/v1/system-config/toggles/reviewEnabled", json={"enabled": False}, headers=admin)

        res = client.get(f"/api/v1/proposals/{world.proposal.id}", headers=admin)
        assert res.get_json()["status"] == "not_reviewed"


class TestOtherEndpoints:
    def test_get_assessment_not_submitted(self, client, auth_headers, world):
        a1, _ = factories.make_assignments(world.proposal, world.reviewer_1, world.reviewer_2)
        res = client.get(f"/api/v1/reviews/{a1.id}/administrasi", headers=auth_headers("reviewer", "rev-1"))
        assert res.status_code == 200
        assert res.get_json() == {"reviewer_assignment_id": a1.id, "submitted": False}

    def test_admin_dashboard(self, client, auth_headers, world):
        res = client.get("/api/v1/dashboard/admin", headers=auth_headers(*ADMIN))
        assert res.status_code == 200
        assert res.get_json()["proposals"]["total"] == 1

    def test_reviewer_cannot_read_proposal(self, client, auth_headers, world):
        res = client.get(f"/api/v1/proposals/{world.proposal.id}", headers=auth_headers("reviewer", "rev-1"))
        assert res.status_code == 403

    def test_unknown_proposal_is_404(self, client, auth_headers):
        res = client.get("/api/v1/proposals/9999", headers=auth_headers(*ADMIN))
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"

    @pytest.mark.parametrize("path", ["/api/v1/dashboard/reviewer", "/api/v1/reviewer-assignments/mine"])
    def test_reviewer_only_routes_reject_students(self, client, auth_headers, path):
        res = client.get(path, headers=auth_headers("mahasiswa", "mhs-1"))
        assert res.status_code == 403
