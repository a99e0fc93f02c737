"""CLI tools for Clinic Ops administration."""

import click

from clinicops.core.config import settings
from clinicops.db.enums import DealStageType, Role
from clinicops.db.models import DealStage, Membership, Organization, User
from clinicops.db.session import SessionLocal

DEFAULT_STAGES = [
    ("New", DealStageType.OPEN),
    ("Contacted", DealStageType.OPEN),
    ("Consultation Booked", DealStageType.OPEN),
    ("Won", DealStageType.WON),
    ("Lost", DealStageType.LOST),
]


@click.group()
def cli():
    """Clinic Ops CLI tools."""
    pass


@cli.command()
@click.option("--name", required=True, help="Organization name")
@click.option("--slug", required=True, help="URL-friendly slug (lowercase, no spaces)")
@click.option("--admin-email", required=True, help="Admin email address")
@click.option("--admin-name", default=None, help="Admin full name")
def create_org(name: str, slug: str, admin_email: str, admin_name: str | None):
    """
    Create organization with its first admin.

    The admin signs in through the hosted auth provider; the user id
    printed here must match the provider's `sub` for that account.

    Example:
        clinicops create-org --name "Acme Clinic" --slug "acme" --admin-email "admin@acme.com"
    """
    db = SessionLocal()
    try:
        slug = slug.lower().strip()
        if not slug.replace("-", "").replace("_", "").isalnum():
            click.echo("❌ Slug must be alphanumeric (with optional hyphens/underscores)")
            raise SystemExit(1)

        if db.query(Organization).filter(Organization.slug == slug).first():
            click.echo(f"❌ Organization with slug '{slug}' already exists")
            raise SystemExit(1)

        email = admin_email.strip().lower()
        if db.query(User).filter(User.email == email).first():
            click.echo(f"❌ User already exists: {email}")
            raise SystemExit(1)

        org = Organization(name=name, slug=slug)
        db.add(org)
        db.flush()

        user = User(
            email=email,
            full_name=admin_name,
            annual_leave_total=settings.DEFAULT_ANNUAL_LEAVE_DAYS,
            sick_leave_total=settings.DEFAULT_SICK_LEAVE_DAYS,
        )
        db.add(user)
        db.flush()

        db.add(Membership(user_id=user.id, organization_id=org.id, role=Role.ADMIN.value))
        db.commit()

        click.echo(f"✓ Created organization: {name}")
        click.echo(f"  ID: {org.id}")
        click.echo(f"  Slug: {slug}")
        click.echo(f"✓ Created admin {email}")
        click.echo(f"  User ID: {user.id}")
    except SystemExit:
        raise
    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
        raise SystemExit(1)
    finally:
        db.close()


@cli.command()
@click.option("--org-slug", required=True, help="Organization slug")
def seed_stages(org_slug: str):
    """
    Insert the default deal pipeline for an organization.

    Skips stages that already exist by name. "New" becomes the default stage.
    """
    db = SessionLocal()
    try:
        org = db.query(Organization).filter(Organization.slug == org_slug.lower()).first()
        if not org:
            click.echo(f"❌ Organization not found: {org_slug}")
            raise SystemExit(1)

        existing = {
            name
            for (name,) in db.query(DealStage.name).filter(DealStage.organization_id == org.id)
        }
        has_default = (
            db.query(DealStage.id)
            .filter(DealStage.organization_id == org.id, DealStage.is_default.is_(True))
            .first()
            is not None
        )

        created = 0
        for position, (name, stage_type) in enumerate(DEFAULT_STAGES):
            if name in existing:
                continue
            db.add(
                DealStage(
                    organization_id=org.id,
                    name=name,
                    stage_type=stage_type.value,
                    sort_order=position,
                    is_default=position == 0 and not has_default,
                )
            )
            created += 1
        db.commit()

        click.echo(f"✓ Seeded {created} stage(s) for {org.name}")
    except SystemExit:
        raise
    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
        raise SystemExit(1)
    finally:
        db.close()


if __name__ == "__main__":
    cli()
