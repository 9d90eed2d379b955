import asyncio
import logging
import typer
from tortoise import Tortoise
from tortoise.exceptions import BaseORMException, IntegrityError

from ..core.config import TORTOISE_ORM
from ..core.logging_config import configure_logging
from ..features.auth.models import User as AuthUser, ADMIN_ROLE_HIERARCHY
from ..features.auth.security import get_password_hash
from ..features.notifications.service import seed_default_templates

logger = logging.getLogger(__name__)

app = typer.Typer(name="bazar-admin", help="CLI for managing Bazar admin accounts and moderation data.")


class DBConnection:
    """Async context manager that opens the Tortoise connection for a single command."""

    async def __aenter__(self):
        await Tortoise.init(config=TORTOISE_ORM)
        await Tortoise.generate_schemas(safe=True)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await Tortoise.close_connections()


def _check_admin_role(admin_role: str) -> str:
    if admin_role not in ADMIN_ROLE_HIERARCHY:
        raise typer.BadParameter(f"Must be one of: {', '.join(ADMIN_ROLE_HIERARCHY)}")
    return admin_role


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")):
    configure_logging("DEBUG" if verbose else "WARNING")


# User management commands
user_app = typer.Typer(name="users", help="Manage admin and customer accounts.")
app.add_typer(user_app)


@user_app.command("create-admin")
def create_admin_user_command(
    username: str = typer.Option(..., prompt=True, help="Username for the new admin."),
    email: str = typer.Option(..., prompt=True, help="Email for the new admin."),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password for the new admin."),
    admin_role: str = typer.Option("admin", callback=_check_admin_role, help="support, moderator, admin or super_admin."),
):
    """Creates a new admin user."""
    asyncio.run(_create_admin_user(username, email, password, admin_role))


async def _create_admin_user(username: str, email: str, password: str, admin_role: str):
    async with DBConnection():
        typer.echo(f"Attempting to create admin user: {username} ({email})...")
        if await AuthUser.filter(username=username).exists():
            typer.secho(f"Error: User with username '{username}' already exists.", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        if await AuthUser.filter(email=email).exists():
            typer.secho(f"Error: User with email '{email}' already exists.", fg=typer.colors.RED)
            raise typer.Exit(code=1)

        try:
            admin_user = await AuthUser.create(
                username=username,
                email=email,
                hashed_password=get_password_hash(password),
                role="admin",
                admin_role=admin_role,
                status="active",
            )
        except IntegrityError as e:
            typer.secho(f"Error creating admin user: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        typer.secho(
            f"Admin user '{admin_user.username}' ({admin_role}) created successfully with ID: {admin_user.public_id}",
            fg=typer.colors.GREEN,
        )


@user_app.command("promote-to-admin")
def promote_user_to_admin_command(
    username: str = typer.Argument(..., help="The username of the user to promote to admin."),
    admin_role: str = typer.Option("moderator", callback=_check_admin_role, help="Admin role to grant."),
):
    """Promotes an existing user to the admin role, or changes an admin's role."""
    asyncio.run(_promote_user_to_admin(username, admin_role))


async def _promote_user_to_admin(username: str, admin_role: str):
    async with DBConnection():
        user = await AuthUser.get_or_none(username=username)
        if not user:
            typer.secho(f"Error: User with username '{username}' not found.", fg=typer.colors.RED)
            raise typer.Exit(code=1)

        if user.role == "admin" and user.admin_role == admin_role:
            typer.secho(f"User '{username}' is already an admin with role '{admin_role}'.", fg=typer.colors.YELLOW)
            raise typer.Exit(code=0)

        if not user.is_active:
            typer.secho(
                f"Error: User '{username}' is {user.status}. Enable the user before promoting to admin.",
                fg=typer.colors.RED,
            )
            raise typer.Exit(code=1)

        user.role = "admin"
        user.admin_role = admin_role
        await user.save(update_fields=["role", "admin_role", "updated_at"])
        typer.secho(f"User '{username}' is now an admin with role '{admin_role}'.", fg=typer.colors.GREEN)


async def _set_user_status(username: str, new_status: str, verb: str):
    async with DBConnection():
        user = await AuthUser.get_or_none(username=username)
        if not user:
            typer.secho(f"Error: User with username '{username}' not found.", fg=typer.colors.RED)
            raise typer.Exit(code=1)

        if user.status == new_status:
            typer.secho(f"User '{username}' is already {new_status}.", fg=typer.colors.YELLOW)
            raise typer.Exit(code=0)

        user.status = new_status
        await user.save(update_fields=["status", "updated_at"])
        logger.info(f"User {username} status set to {new_status} from the CLI")
        typer.secho(f"User account '{username}' has been successfully {verb}.", fg=typer.colors.GREEN)


@user_app.command("disable-user")
def disable_user_account_command(
    username: str = typer.Argument(..., help="The username of the user to disable.")
):
    """Suspends an existing user's account."""
    asyncio.run(_set_user_status(username, "suspended", "disabled"))


@user_app.command("enable-user")
def enable_user_account_command(
    username: str = typer.Argument(..., help="The username of the user to enable.")
):
    """Re-activates a suspended user's account."""
    asyncio.run(_set_user_status(username, "active", "enabled"))


# E-mail template commands
template_app = typer.Typer(name="templates", help="Manage moderation e-mail templates.")
app.add_typer(template_app)


@template_app.command("seed")
def seed_templates_command():
    """Creates the default article_approved and article_rejected templates."""
    asyncio.run(_seed_templates())


async def _seed_templates():
    async with DBConnection():
        created = await seed_default_templates()
        if created:
            typer.secho(f"Created templates: {', '.join(created)}", fg=typer.colors.GREEN)
        else:
            typer.secho("All default templates already exist.", fg=typer.colors.YELLOW)


@app.command("test-db-connection")
def test_db_connection_command_sync():
    """Tests the database connection and counts admin accounts."""
    asyncio.run(test_db_connection_command())


async def test_db_connection_command():
    async with DBConnection():
        typer.echo("Successfully connected to the database.")
        try:
            user_count = await AuthUser.all().count()
            admin_count = await AuthUser.filter(role="admin").count()
        except BaseORMException as e:
            typer.secho(f"Error querying users: {e}", err=True, fg=typer.colors.RED)
            raise typer.Exit(code=1)
        typer.echo(f"Found {user_count} user(s), {admin_count} of them admins.")


if __name__ == "__main__":
    app()
