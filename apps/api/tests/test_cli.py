"""Tests for the admin CLI."""
from click.testing import CliRunner

from clinicops.cli import cli
from clinicops.db.models import DealStage, Membership, Organization, User


def test_create_org_with_admin(db):
    result = CliRunner().invoke(
        cli,
        ["create-org", "--name", "Acme Clinic", "--slug", "Acme", "--admin-email", "Admin@Acme.com"],
    )
    assert result.exit_code == 0, result.output
    assert "✓ Created organization: Acme Clinic" in result.output

    org = db.query(Organization).filter(Organization.slug == "acme").one()
    user = db.query(User).filter(User.email == "admin@acme.com").one()
    membership = db.query(Membership).filter(Membership.user_id == user.id).one()
    assert membership.organization_id == org.id
    assert membership.role == "admin"


def test_create_org_rejects_bad_slug(db):
    result = CliRunner().invoke(
        cli, ["create-org", "--name", "X", "--slug", "bad slug!", "--admin-email", "a@b.com"]
    )
    assert result.exit_code == 1
    assert "Slug must be alphanumeric" in result.output


def test_create_org_rejects_duplicate_slug(db, test_org):
    result = CliRunner().invoke(
        cli, ["create-org", "--name", "X", "--slug", test_org.slug, "--admin-email", "new@b.com"]
    )
    assert result.exit_code == 1
    assert "already exists" in result.output


def test_seed_stages_is_repeatable(db, test_org):
    runner = CliRunner()
    first = runner.invoke(cli, ["seed-stages", "--org-slug", test_org.slug])
    assert first.exit_code == 0, first.output
    assert "Seeded 5 stage(s)" in first.output

    second = runner.invoke(cli, ["seed-stages", "--org-slug", test_org.slug])
    assert "Seeded 0 stage(s)" in second.output

    stages = (
        db.query(DealStage)
        .filter(DealStage.organization_id == test_org.id)
        .order_by(DealStage.sort_order)
        .all()
    )
    assert [s.name for s in stages] == ["New", "Contacted", "Consultation Booked", "Won", "Lost"]
    assert [s.is_default for s in stages] == [True, False, False, False, False]


def test_seed_stages_unknown_org(db):
    result = CliRunner().invoke(cli, ["seed-stages", "--org-slug", "missing"])
    assert result.exit_code == 1
    assert "Organization not found" in result.output
