"""
Proposal lifecycle: submission preconditions, upload gating, admin override.
"""

import pytest

from app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.models import db
from app.models.audit import AuditLog
from app.models.proposal import Proposal, ProposalFile, validate_manual_transition
from app.services import proposal_service as svc

from tests import factories


def _pdf(**overrides):
    meta = {
        "file_path": "proposals/1/proposal.pdf",
        "file_name": "proposal.pdf",
        "file_size": 2048,
        "mime_type": "application/pdf",
    }
    meta.update(overrides)
    return meta


@pytest.fixture()
def submission_open(world):
    factories.set_toggles(uploadProposalEnabled=True)
    return world


class TestManualTransitions:
    @pytest.mark.parametrize("src,dst", [("draft", "submitted"), ("needs_revision", "revised")])
    def test_allowed(self, src, dst):
        assert validate_manual_transition(src, dst) is True

    @pytest.mark.parametrize("src,dst", [
        ("submitted", "draft"),
        ("draft", "under_review"),
        ("reviewed", "needs_revision"),
        ("revised", "submitted"),
    ])
    def test_rejected(self, src, dst):
        assert validate_manual_transition(src, dst) is False


class TestSubmitProposal:
    def test_happy_path(self, submission_open):
        factories.make_file(submission_open.proposal)
        result = svc.submit_proposal(submission_open.proposal.id, "mhs-1")
        assert result["status"] == "submitted"
        assert result["submitted_at"] is not None

    def test_non_member_forbidden(self, submission_open):
        factories.make_file(submission_open.proposal)
        with pytest.raises(ForbiddenError):
            svc.submit_proposal(submission_open.proposal.id, "mhs-luar")

    def test_phase_closed(self, world):
        factories.make_file(world.proposal)
        with pytest.raises(ValidationError, match="Upload proposal"):
            svc.submit_proposal(world.proposal.id, "mhs-1")

    def test_requires_file(self, submission_open):
        with pytest.raises(ValidationError, match="belum memiliki file"):
            svc.submit_proposal(submission_open.proposal.id, "mhs-1")

    def test_requires_full_team(self, submission_open):
        student = factories.make_mahasiswa("solo-1")
        team = factories.make_team(submission_open.jenis, [student], nama="Tim Solo")
        proposal = factories.original_proposal(team)
        factories.make_file(proposal)
        with pytest.raises(ValidationError, match="minimal 3 anggota"):
            svc.submit_proposal(proposal.id, "solo-1")

    def test_requires_advisor(self, submission_open):
        students = [factories.make_mahasiswa(f"beta-{i}") for i in range(3)]
        team = factories.make_team(submission_open.jenis, students, with_dosen=False, nama="Tim Beta")
        proposal = factories.original_proposal(team)
        factories.make_file(proposal)
        with pytest.raises(ValidationError, match="dosen pembimbing"):
            svc.submit_proposal(proposal.id, "beta-0")

    def test_twice_rejected(self, submission_open):
        factories.make_file(submission_open.proposal)
        svc.submit_proposal(submission_open.proposal.id, "mhs-1")
        with pytest.raises(ValidationError, match="tidak dapat disubmit"):
            svc.submit_proposal(submission_open.proposal.id, "mhs-1")

    def test_missing_proposal(self, submission_open):
        with pytest.raises(NotFoundError):
            svc.submit_proposal(9999, "mhs-1")


class TestUploadFile:
    def test_draft_upload(self, submission_open):
        result = svc.upload_file(submission_open.proposal.id, _pdf(), "mhs-2")
        assert result["file_name"] == "proposal.pdf"
        assert svc.get_latest_file(submission_open.proposal.id)["id"] == result["id"]

    def test_rejects_non_pdf(self, submission_open):
        with pytest.raises(ValidationError, match="PDF"):
            svc.upload_file(submission_open.proposal.id, _pdf(mime_type="image/png"), "mhs-1")

    def test_rejects_oversized(self, submission_open):
        with pytest.raises(ValidationError, match="Ukuran file"):
            svc.upload_file(submission_open.proposal.id, _pdf(file_size=11 * 1024 * 1024), "mhs-1")

    def test_rejects_incomplete_metadata(self, submission_open):
        with pytest.raises(ValidationError) as exc:
            svc.upload_file(submission_open.proposal.id, {"file_name": "a.pdf"}, "mhs-1")
        assert "file_path" in exc.value.details["missing"]

    def test_draft_upload_needs_phase(self, world):
        with pytest.raises(ValidationError, match="Upload proposal"):
            svc.upload_file(world.proposal.id, _pdf(), "mhs-1")

    def test_locked_while_under_review(self, submission_open):
        factories.set_status(submission_open.proposal, "under_review")
        with pytest.raises(ValidationError, match="under_review"):
            svc.upload_file(submission_open.proposal.id, _pdf(), "mhs-1")

    def test_revision_upload_moves_to_revised(self, world):
        factories.set_status(world.proposal, "needs_revision")
        factories.set_toggles(uploadRevisionEnabled=True)

        svc.upload_file(world.proposal.id, _pdf(file_name="revisi.pdf"), "mhs-3")

        proposal = db.session.get(Proposal, world.proposal.id)
        assert proposal.status == "revised"
        assert ProposalFile.query.filter_by(proposal_id=proposal.id).count() == 1

    def test_revision_upload_needs_revision_phase(self, submission_open):
        factories.set_status(submission_open.proposal, "needs_revision")
        with pytest.raises(ValidationError, match="Upload revisi"):
            svc.upload_file(submission_open.proposal.id, _pdf(), "mhs-1")


class TestOverrideStatus:
    def test_override_is_audited(self, world):
        result = svc.override_status(world.proposal.id, "not_reviewed", "admin-1")
        assert result["status"] == "not_reviewed"
        log = AuditLog.query.filter_by(action="PROPOSAL_STATUS_OVERRIDE").one()
        assert log.old_value == {"status": "draft"}
        assert log.new_value == {"status": "not_reviewed"}

    def test_unknown_status(self, world):
        with pytest.raises(ValidationError):
            svc.override_status(world.proposal.id, "archived", "admin-1")


class TestQueries:
    def test_member_can_read(self, world):
        factories.make_file(world.proposal)
        result = svc.get_proposal(world.proposal.id, "mhs-2")
        assert len(result["files"]) == 1
        assert result["team"]["nama_team"] == "Tim Alpha"

    def test_outsider_cannot_read(self, world):
        with pytest.raises(ForbiddenError):
            svc.get_proposal(world.proposal.id, "mhs-luar")

    def test_list_by_team_returns_both(self, world):
        assert {p["type"] for p in svc.list_by_team(world.team.id)} == {"original", "revised"}

    def test_latest_file_none(self, world):
        assert svc.get_latest_file(world.proposal.id) is None
