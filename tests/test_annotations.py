"""
Reviewer PDF annotations and their blind-review visibility.
"""

import pytest

from app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.services import annotation_service as svc
from app.services.helpers.review_access import Viewer

from tests import factories


@pytest.fixture()
def annotating(world):
    a1, a2 = factories.make_assignments(world.proposal, world.reviewer_1, world.reviewer_2)
    factories.set_toggles(reviewEnabled=True)
    world.a1, world.a2 = a1, a2
    world.file = factories.make_file(world.proposal)
    return world


def _payload(w, assignment, **overrides):
    data = {
        "proposal_file_id": w.file.id,
        "reviewer_assignment_id": assignment.id,
        "type": "highlight",
        "page_number": 2,
        "annotation_data": {"rects": [[10, 20, 100, 40]], "color": "#ffeb3b"},
    }
    data.update(overrides)
    return data


class TestCreateAnnotation:
    def test_create(self, annotating):
        result = svc.create_annotation(_payload(annotating, annotating.a1), "rev-1")
        assert result["type"] == "highlight"
        assert result["page_number"] == 2
        assert result["annotation_data"]["color"] == "#ffeb3b"

    def test_unknown_type(self, annotating):
        with pytest.raises(ValidationError, match="type"):
            svc.create_annotation(_payload(annotating, annotating.a1, type="sticker"), "rev-1")

    def test_page_must_be_positive(self, annotating):
        with pytest.raises(ValidationError, match="page_number"):
            svc.create_annotation(_payload(annotating, annotating.a1, page_number=0), "rev-1")

    def test_other_reviewers_assignment(self, annotating):
        with pytest.raises(ForbiddenError):
            svc.create_annotation(_payload(annotating, annotating.a2), "rev-1")

    def test_review_closed(self, annotating):
        factories.set_toggles(reviewEnabled=False)
        with pytest.raises(ValidationError, match="Review sedang tidak aktif"):
            svc.create_annotation(_payload(annotating, annotating.a1), "rev-1")

    def test_file_of_another_proposal(self, annotating):
        other = factories.make_file(factories.original_proposal(
            factories.make_team(annotating.jenis, [factories.make_mahasiswa("x-1")], nama="Tim Lain")
        ))
        with pytest.raises(ValidationError, match="bukan milik"):
            svc.create_annotation(
                _payload(annotating, annotating.a1, proposal_file_id=other.id), "rev-1",
            )

    def test_missing_file(self, annotating):
        with pytest.raises(NotFoundError):
            svc.create_annotation(_payload(annotating, annotating.a1, proposal_file_id=9999), "rev-1")


class TestFindByFile:
    @pytest.fixture()
    def annotated(self, annotating):
        svc.create_annotation(_payload(annotating, annotating.a1, page_number=3), "rev-1")
        svc.create_annotation(_payload(annotating, annotating.a2, type="comment", page_number=1), "rev-2")
        return annotating

    def test_reviewer_sees_own_only(self, annotated):
        rows = svc.find_by_file(annotated.file.id, Viewer("rev-1", "reviewer"))
        assert [r["page_number"] for r in rows] == [3]
        assert "reviewer_nama" not in rows[0]

    def test_admin_sees_all_with_identity(self, annotated):
        rows = svc.find_by_file(annotated.file.id, Viewer("admin-1", "admin"))
        assert [r["page_number"] for r in rows] == [1, 3]
        assert rows[0]["reviewer_nama"] == "Reviewer Dua"

    def test_student_forbidden(self, annotated):
        with pytest.raises(ForbiddenError):
            svc.find_by_file(annotated.file.id, Viewer("mhs-1", "mahasiswa"))


class TestDeleteAnnotation:
    def test_owner_deletes(self, annotating):
        created = svc.create_annotation(_payload(annotating, annotating.a1), "rev-1")
        svc.delete_annotation(created["id"], "rev-1")
        assert svc.find_by_file(annotating.file.id, Viewer("rev-1", "reviewer")) == []

    def test_other_reviewer_cannot_delete(self, annotating):
        created = svc.create_annotation(_payload(annotating, annotating.a1), "rev-1")
        with pytest.raises(ForbiddenError):
            svc.delete_annotation(created["id"], "rev-2")

    def test_delete_after_review_closed(self, annotating):
        created = svc.create_annotation(_payload(annotating, annotating.a1), "rev-1")
        factories.set_toggles(reviewEnabled=False)
        with pytest.raises(ValidationError):
            svc.delete_annotation(created["id"], "rev-1")
