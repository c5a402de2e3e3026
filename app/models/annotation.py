"""
PKM Review Platform
PDF annotation model.

Annotations belong to a reviewer assignment, so blind-review visibility
follows the assignment owner: a reviewer only ever reads their own.
"""

from datetime import datetime, timezone

from app.models import db

ANNOTATION_TYPES = frozenset({"highlight", "comment", "drawing"})


def _utcnow():
    return datetime.now(timezone.utc)


class PdfAnnotation(db.Model):
    __tablename__ = "pdf_annotations"

    id = db.Column(db.Integer, primary_key=True)
    proposal_file_id = db.Column(
        db.Integer, db.ForeignKey("proposal_files.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    reviewer_assignment_id = db.Column(
        db.Integer, db.ForeignKey("reviewer_assignments.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    type = db.Column(db.String(20), nullable=False, comment="highlight | comment | drawing")
    page_number = db.Column(db.Integer, nullable=False)
    annotation_data = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    proposal_file = db.relationship("ProposalFile")
    reviewer_assignment = db.relationship("ReviewerAssignment")

    def to_dict(self, include_reviewer=False):
        result = {
            "id": self.id,
            "proposal_file_id": self.proposal_file_id,
            "reviewer_assignment_id": self.reviewer_assignment_id,
            "type": self.type,
            "page_number": self.page_number,
            "annotation_data": self.annotation_data,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_reviewer and self.reviewer_assignment:
            ra = self.reviewer_assignment
            result["reviewer_number"] = ra.reviewer_number
            result["reviewer_nama"] = ra.reviewer_user.nama if ra.reviewer_user else None
        return result
