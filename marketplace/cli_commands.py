"""
Flask CLI commands for marketplace management.

Commands:
- flask init-db: Create all tables
- flask create-admin: Create a new admin user
"""

import click
import re
from marketplace.database import get_session, create_tables
from marketplace.models import AccountType, AuditAction
from marketplace.services.audit_service import log_action
from marketplace.exceptions import BusinessLogicError


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create every table that does not exist yet."""
        create_tables()
        click.echo(click.style('Database tables created', fg='green'))

    @app.cli.command('create-admin')
    @click.option('--email', prompt=True, help='Admin email address')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Admin password')
    @click.option('--first-name', default='Admin', help='First name')
    @click.option('--last-name', default='User', help='Last name')
    def create_admin(email, password, first_name, last_name):
        """Create a platform admin (admins cannot self-register)."""
        from marketplace.services.auth_service import create_user

        email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        if not re.match(email_pattern, email):
            click.echo(click.style('Invalid email. Use format: user@example.com', fg='red'))
            return

        if len(password) < 6:
            click.echo(click.style('Password must be at least 6 characters.', fg='red'))
            return

        session = get_session()
        try:
            admin = create_user(
                session,
                email=email,
                password=password,
                account_type=AccountType.ADMIN.value,
                first_name=first_name,
                last_name=last_name
            )
        except BusinessLogicError as e:
            click.echo(click.style(f'Could not create admin: {e.message}', fg='red'))
            return

        log_action(session, AuditAction.ADMIN_CREATED, resource_type='user', resource_id=admin.id)
        session.commit()

        click.echo(click.style('\nAdmin created successfully!', fg='green', bold=True))
        click.echo(f'   Email: {admin.email}')
        click.echo(f'   ID: {admin.id}')
