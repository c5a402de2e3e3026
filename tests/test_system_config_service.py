"""
Phase toggles and the proposal status cascade.

Covers:
    - mutual exclusion of the three toggles
    - reviewEnabled ON: submitted | revised → under_review
    - reviewEnabled OFF: under_review → reviewed / not_reviewed (both reviewers rule)
    - uploadRevisionEnabled ON: reviewed → needs_revision
    - implicit review close when another phase opens over it
    - idempotence, audit trail, validation
"""

from decimal import Decimal

import pytest

from app.core.exceptions import ValidationError
from app.models import db
from app.models.audit import AuditLog
from app.models.proposal import Proposal
from app.services import system_config_service as svc

from tests import factories

ADMIN = "admin-1"


def _second_team(world, nama="Tim Beta"):
    students = [factories.make_mahasiswa(f"{nama}-{i}") for i in range(3)]
    team = factories.make_team(world.jenis, students, nama=nama)
    return factories.original_proposal(team)


def _status(proposal_id):
    return db.session.get(Proposal, proposal_id).status


def _distribution():
    rows = db.session.query(Proposal.id, Proposal.status).order_by(Proposal.id).all()
    return {pid: status for pid, status in rows}


class TestToggleState:
    def test_defaults_all_off(self):
        assert svc.get_all_toggles() == {
            svc.UPLOAD_PROPOSAL: False,
            svc.REVIEW: False,
            svc.UPLOAD_REVISION: False,
        }
        assert svc.current_phase() == "CLOSED"

    @pytest.mark.parametrize("key", svc.TOGGLE_KEYS)
    def test_enable_is_exclusive(self, key):
        for other in svc.TOGGLE_KEYS:
            svc.set_toggle(other, True, ADMIN)
        states = svc.set_toggle(key, True, ADMIN)
        assert sum(states.values()) == 1
        assert states[key] is True
        assert svc.get_all_toggles() == states

    def test_disable_leaves_others_alone(self):
        svc.set_toggle(svc.UPLOAD_PROPOSAL, True, ADMIN)
        states = svc.set_toggle(svc.REVIEW, False, ADMIN)
        assert states[svc.UPLOAD_PROPOSAL] is True
        assert states[svc.REVIEW] is False

    def test_invalid_key_rejected(self):
        with pytest.raises(ValidationError, match="tidak valid"):
            svc.set_toggle("bogusEnabled", True, ADMIN)

    def test_non_boolean_rejected(self):
        with pytest.raises(ValidationError):
            svc.set_toggle(svc.REVIEW, "yes", ADMIN)

    def test_current_phase_follows_toggle(self):
        svc.set_toggle(svc.UPLOAD_REVISION, True, ADMIN)
        assert svc.current_phase() == "REVISION"

    def test_require_enabled(self):
        with pytest.raises(ValidationError, match="tutup"):
            svc.require_enabled(svc.REVIEW, "Fase tutup")
        svc.set_toggle(svc.REVIEW, True, ADMIN)
        svc.require_enabled(svc.REVIEW, "Fase tutup")

    def test_audit_row_written(self):
        svc.set_toggle(svc.REVIEW, True, ADMIN)
        row = AuditLog.query.filter_by(action="TOGGLE_UPDATE").one()
        assert row.entity_id == svc.REVIEW
        assert row.old_value == {"enabled": False}
        assert row.new_value == {"enabled": True}
        assert row.user_id == ADMIN


class TestReviewOpenCascade:
    def test_submitted_and_revised_enter_review(self, world):
        draft = _second_team(world, "Tim Draft")
        revised = _second_team(world, "Tim Revisi")
        factories.set_status(world.proposal, "submitted")
        factories.set_status(revised, "revised")

        svc.set_toggle(svc.REVIEW, True, ADMIN)

        assert _status(world.proposal.id) == "under_review"
        assert _status(revised.id) == "under_review"
        assert _status(draft.id) == "draft"

    def test_upload_proposal_has_no_cascade(self, world):
        factories.set_status(world.proposal, "submitted")
        before = _distribution()
        svc.set_toggle(svc.UPLOAD_PROPOSAL, True, ADMIN)
        assert _distribution() == before

    def test_enabling_twice_is_idempotent(self, world):
        factories.set_status(world.proposal, "submitted")
        svc.set_toggle(svc.REVIEW, True, ADMIN)
        once = _distribution()
        svc.set_toggle(svc.REVIEW, True, ADMIN)
        assert _distribution() == once


class TestReviewCloseFinalization:
    def _under_review_with_assignments(self, world, proposal=None):
        proposal = proposal or world.proposal
        factories.set_status(proposal, "submitted")
        a1, a2 = factories.make_assignments(proposal, world.reviewer_1, world.reviewer_2)
        svc.set_toggle(svc.REVIEW, True, ADMIN)
        return a1, a2

    def test_both_complete_becomes_reviewed(self, world):
        a1, a2 = self._under_review_with_assignments(world)
        factories.make_complete_review(a1, total_kesalahan=1, total_skor=270)
        factories.make_complete_review(a2, total_kesalahan=2, total_skor=300)

        svc.set_toggle(svc.REVIEW, False, ADMIN)

        proposal = db.session.get(Proposal, world.proposal.id)
        assert proposal.status == "reviewed"
        assert proposal.administratif_score == Decimal("1.50")
        assert proposal.substantif_score == Decimal("285.00")

    def test_one_complete_becomes_not_reviewed(self, world):
        a1, _ = self._under_review_with_assignments(world)
        factories.make_complete_review(a1)

        svc.set_toggle(svc.REVIEW, False, ADMIN)

        assert _status(world.proposal.id) == "not_reviewed"

    def test_half_scored_reviewer_is_incomplete(self, world):
        a1, a2 = self._under_review_with_assignments(world)
        factories.make_complete_review(a1)
        factories.make_complete_review(a2, substansi=False)

        svc.set_toggle(svc.REVIEW, False, ADMIN)

        assert _status(world.proposal.id) == "not_reviewed"

    def test_unassigned_proposal_becomes_not_reviewed(self, world):
        factories.set_status(world.proposal, "submitted")
        svc.set_toggle(svc.REVIEW, True, ADMIN)
        svc.set_toggle(svc.REVIEW, False, ADMIN)
        assert _status(world.proposal.id) == "not_reviewed"

    def test_opening_revision_closes_review_then_cascades(self, world):
        a1, a2 = self._under_review_with_assignments(world)
        factories.make_complete_review(a1)
        factories.make_complete_review(a2)
        other = _second_team(world)
        factories.set_status(other, "under_review")

        states = svc.set_toggle(svc.UPLOAD_REVISION, True, ADMIN)

        assert states[svc.REVIEW] is False
        assert _status(world.proposal.id) == "needs_revision"
        assert _status(other.id) == "not_reviewed"


class TestRevisionCascade:
    def test_reviewed_moves_to_needs_revision(self, world):
        not_reviewed = _second_team(world)
        factories.set_status(world.proposal, "reviewed")
        factories.set_status(not_reviewed, "not_reviewed")

        svc.set_toggle(svc.UPLOAD_REVISION, True, ADMIN)

        assert _status(world.proposal.id) == "needs_revision"
        assert _status(not_reviewed.id) == "not_reviewed"

    def test_disable_revision_has_no_cascade(self, world):
        factories.set_status(world.proposal, "needs_revision")
        svc.set_toggle(svc.UPLOAD_REVISION, True, ADMIN)
        svc.set_toggle(svc.UPLOAD_REVISION, False, ADMIN)
        assert _status(world.proposal.id) == "needs_revision"
