"""PKM review: master data, teams, proposals, assignments, assessments

Revision ID: a1b2c3d4e501
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

revision = "a1b2c3d4e501"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ── Master data ──────────────────────────────────────────────────────
    op.create_table(
        "jenis_pkm",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("nama", sa.String(100), nullable=False, unique=True),
        sa.Column("deskripsi", sa.Text(), server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "kriteria_administrasi",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("jenis_pkm_id", sa.Integer(), sa.ForeignKey("jenis_pkm.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("deskripsi", sa.Text(), nullable=False),
        sa.Column("urutan", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_by", sa.String(64)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "kriteria_substansi",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("jenis_pkm_id", sa.Integer(), sa.ForeignKey("jenis_pkm.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("nama", sa.String(200), nullable=False),
        sa.Column("deskripsi", sa.Text(), server_default=""),
        sa.Column("skor_min", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("skor_max", sa.Integer(), nullable=False, server_default="7"),
        sa.Column("bobot", sa.Integer(), nullable=False),
        sa.Column("urutan", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_by", sa.String(64)),
        sa.Column("updated_by", sa.String(64)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "dosen_pembimbing",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("nama", sa.String(200), nullable=False),
        sa.Column("nidn", sa.String(20), unique=True),
        sa.Column("email", sa.String(200)),
    )

    # ── Teams & proposals ────────────────────────────────────────────────
    op.create_table(
        "mahasiswa",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False, unique=True, index=True),
        sa.Column("nama", sa.String(200), nullable=False),
        sa.Column("nim", sa.String(30), nullable=False, unique=True),
    )
    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("nama_team", sa.String(200), nullable=False),
        sa.Column("judul_proposal", sa.String(500), nullable=False),
        sa.Column("jenis_pkm_id", sa.Integer(), sa.ForeignKey("jenis_pkm.id", ondelete="RESTRICT"), nullable=False, index=True),
        sa.Column("dosen_pembimbing_id", sa.Integer(), sa.ForeignKey("dosen_pembimbing.id", ondelete="SET NULL")),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("created_by", sa.String(64)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "team_members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("mahasiswa_id", sa.Integer(), sa.ForeignKey("mahasiswa.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="anggota"),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("mahasiswa_id", name="uq_team_member_mahasiswa"),
    )
    op.create_table(
        "proposals",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("status", sa.String(30), nullable=False, server_default="draft"),
        sa.Column("submitted_at", sa.DateTime(timezone=True)),
        sa.Column("administratif_score", sa.Numeric(10, 2)),
        sa.Column("substantif_score", sa.Numeric(10, 2)),
        sa.Column("created_by", sa.String(64)),
        sa.Column("updated_by", sa.String(64)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("team_id", "type", name="uq_proposal_team_type"),
    )
    op.create_index("ix_proposals_status", "proposals", ["status"])
    op.create_table(
        "proposal_files",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("proposal_id", sa.Integer(), sa.ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("file_path", sa.String(500), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("uploaded_by", sa.String(64)),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ── Reviewers & assessments ──────────────────────────────────────────
    op.create_table(
        "reviewer_users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False, unique=True, index=True),
        sa.Column("nama", sa.String(200), nullable=False),
        sa.Column("email", sa.String(200)),
    )
    op.create_table(
        "reviewer_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("proposal_id", sa.Integer(), sa.ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("reviewer_user_id", sa.Integer(), sa.ForeignKey("reviewer_users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("reviewer_number", sa.Integer(), nullable=False),
        sa.Column("assigned_by", sa.String(64)),
        sa.Column("assigned_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("proposal_id", "reviewer_number", name="uq_assignment_slot"),
        sa.UniqueConstraint("proposal_id", "reviewer_user_id", name="uq_assignment_reviewer"),
        sa.CheckConstraint("reviewer_number IN (1, 2)", name="ck_assignment_reviewer_number"),
    )
    op.create_table(
        "penilaian_administrasi",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("reviewer_assignment_id", sa.Integer(), sa.ForeignKey("reviewer_assignments.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("total_kesalahan", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("catatan", sa.Text()),
        sa.Column("is_complete", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "detail_penilaian_administrasi",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("penilaian_administrasi_id", sa.Integer(), sa.ForeignKey("penilaian_administrasi.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("kriteria_administrasi_id", sa.Integer(), sa.ForeignKey("kriteria_administrasi.id", ondelete="CASCADE"), nullable=False),
        sa.Column("ada_kesalahan", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.UniqueConstraint("penilaian_administrasi_id", "kriteria_administrasi_id", name="uq_detail_administrasi_kriteria"),
    )
    op.create_table(
        "penilaian_substansi",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("reviewer_assignment_id", sa.Integer(), sa.ForeignKey("reviewer_assignments.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("total_skor", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("catatan", sa.Text()),
        sa.Column("is_complete", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "detail_penilaian_substansi",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("penilaian_substansi_id", sa.Integer(), sa.ForeignKey("penilaian_substansi.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("kriteria_substansi_id", sa.Integer(), sa.ForeignKey("kriteria_substansi.id", ondelete="CASCADE"), nullable=False),
        sa.Column("skor", sa.Numeric(5, 2), nullable=False),
        sa.Column("nilai", sa.Numeric(10, 2), nullable=False),
        sa.UniqueConstraint("penilaian_substansi_id", "kriteria_substansi_id", name="uq_detail_substansi_kriteria"),
    )
    op.create_table(
        "pdf_annotations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("proposal_file_id", sa.Integer(), sa.ForeignKey("proposal_files.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("reviewer_assignment_id", sa.Integer(), sa.ForeignKey("reviewer_assignments.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("page_number", sa.Integer(), nullable=False),
        sa.Column("annotation_data", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ── Phase toggles & audit ────────────────────────────────────────────
    op.create_table(
        "system_config",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("config_key", sa.String(100), nullable=False, unique=True),
        sa.Column("config_value", sa.JSON(), nullable=False),
        sa.Column("updated_by", sa.String(64)),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("action", sa.String(60), nullable=False),
        sa.Column("entity_type", sa.String(30), nullable=False),
        sa.Column("entity_id", sa.String(64), nullable=False),
        sa.Column("old_value", sa.JSON()),
        sa.Column("new_value", sa.JSON()),
        sa.Column("user_id", sa.String(64), index=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_audit_entity", "audit_logs", ["entity_type", "entity_id"])
    op.create_index("idx_audit_action", "audit_logs", ["action"])
    op.create_index("idx_audit_ts", "audit_logs", ["timestamp"])


def downgrade():
    op.drop_index("idx_audit_ts", table_name="audit_logs")
    op.drop_index("idx_audit_action", table_name="audit_logs")
    op.drop_index("idx_audit_entity", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_table("system_config")
    op.drop_table("pdf_annotations")
    op.drop_table("detail_penilaian_substansi")
    op.drop_table("penilaian_substansi")
    op.drop_table("detail_penilaian_administrasi")
    op.drop_table("penilaian_administrasi")
    op.drop_table("reviewer_assignments")
    op.drop_table("reviewer_users")
    op.drop_table("proposal_files")
    op.drop_index("ix_proposals_status", table_name="proposals")
    op.drop_table("proposals")
    op.drop_table("team_members")
    op.drop_table("teams")
    op.drop_table("mahasiswa")
    op.drop_table("dosen_pembimbing")
    op.drop_table("kriteria_substansi")
    op.drop_table("kriteria_administrasi")
    op.drop_table("jenis_pkm")
