"""
AdminPanel CLI — bootstrap and management commands.

Commands:
- adminpanel init           — Create DB schema, seed permissions, roles and the admin user
- adminpanel seed-products  — Insert N sample products
- adminpanel run            — Start the Reflex dev server
- adminpanel worker         — Start the Celery export worker
- adminpanel logs-cleanup   — Apply log retention (compress / delete old JSONL files)
"""

from __future__ import annotations

import argparse
import getpass
import logging
import random
from typing import Optional

logger = logging.getLogger("adminpanel.cli")

ADMIN_USERNAME = "admin"


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="adminpanel",
        description="AdminPanel — product catalog admin console",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # adminpanel init
    init_parser = subparsers.add_parser("init", help="Bootstrap the panel database")
    init_parser.add_argument(
        "--config", default="adminpanel.yaml", help="Path to adminpanel.yaml (default: adminpanel.yaml)"
    )
    init_parser.add_argument(
        "--admin-password", help="Admin password (prompted if not provided)"
    )

    # adminpanel seed-products
    seed_parser = subparsers.add_parser("seed-products", help="Insert sample products")
    seed_parser.add_argument("count", type=int, help="Number of products to create")
    seed_parser.add_argument("--config", default="adminpanel.yaml", help="Path to adminpanel.yaml")
    seed_parser.add_argument("--seed", type=int, help="Random seed for reproducible names")

    # adminpanel run
    run_parser = subparsers.add_parser("run", help="Start the Reflex dev server")
    run_parser.add_argument("--host", default="0.0.0.0", help="Backend host to bind (default: 0.0.0.0)")
    run_parser.add_argument("--port", type=int, default=3000, help="Frontend port (default: 3000)")
    run_parser.add_argument("--backend-port", type=int, default=8000, help="Backend port (default: 8000)")
    run_parser.add_argument("--env", choices=["dev", "prod"], default="dev", help="Environment (default: dev)")

    # adminpanel worker
    worker_parser = subparsers.add_parser("worker", help="Start the Celery export worker")
    worker_parser.add_argument("--config", default="adminpanel.yaml", help="Path to adminpanel.yaml")
    worker_parser.add_argument("--loglevel", default="info", help="Celery log level (default: info)")

    # adminpanel logs-cleanup
    cleanup_parser = subparsers.add_parser("logs-cleanup", help="Apply log retention")
    cleanup_parser.add_argument("--config", default="adminpanel.yaml", help="Path to adminpanel.yaml")

    args = parser.parse_args(argv)

    if args.command == "init":
        return cmd_init(args)
    elif args.command == "seed-products":
        return cmd_seed_products(args)
    elif args.command == "run":
        return cmd_run(args)
    elif args.command == "worker":
        return cmd_worker(args)
    elif args.command == "logs-cleanup":
        return cmd_logs_cleanup(args)
    else:
        parser.print_help()
        return 0


def _load_config(path: str):
    from adminpanel.engine.config import load_panel_config

    config = load_panel_config(path)
    print(f"[OK] Loaded config from {path}")
    return config


def cmd_init(args: argparse.Namespace) -> int:
    """
    Bootstrap the panel database:
    1. Load config from adminpanel.yaml
    2. Create all tables (SQLAlchemy metadata.create_all)
    3. Seed one Permission row per capability
    4. Seed the default roles with their permissions
    5. Create the admin user (system_admin) or reset its password
    """
    print("=" * 60)
    print("  AdminPanel Initialization")
    print("=" * 60)

    from adminpanel.engine.errors import PanelConfigError

    try:
        config = _load_config(args.config)
    except PanelConfigError as e:
        print(f"[ERROR] Failed to load config: {e.message}")
        return 1

    from adminpanel.db.session import get_session, init_db

    try:
        init_db(config.database.url, create_tables=True)
        print("[OK] Database tables created")
    except Exception as e:
        print(f"[ERROR] Failed to create tables: {e}")
        return 1

    admin_password = args.admin_password
    if not admin_password:
        while True:
            admin_password = getpass.getpass("  Enter admin password: ")
            confirm = getpass.getpass("  Confirm password: ")
            if admin_password == confirm:
                break
            print("  Passwords do not match. Try again.")

    if len(admin_password) < config.security.password_min_length:
        print(f"[ERROR] Password must be at least {config.security.password_min_length} characters")
        return 1

    from sqlalchemy import select

    from adminpanel.db.models import Permission, Role, User
    from adminpanel.security.abilities import DEFAULT_ROLES, all_abilities, split_ability
    from adminpanel.security.auth import hash_password

    session = get_session()
    try:
        existing = {p.name: p for p in session.execute(select(Permission)).scalars()}
        created = 0
        for name in all_abilities():
            if name not in existing:
                action, entity = split_ability(name)
                existing[name] = Permission(name=name, action=action, entity=entity)
                session.add(existing[name])
                created += 1
        session.flush()
        print(f"[OK] Permissions ready ({created} created)")

        for role_name, abilities in DEFAULT_ROLES.items():
            role = session.execute(select(Role).where(Role.name == role_name)).scalar_one_or_none()
            if role is None:
                role = Role(name=role_name, description=f"Default {role_name} role")
                session.add(role)
            role.permissions = [existing[name] for name in abilities]
        session.flush()
        print(f"[OK] Roles ready: {', '.join(DEFAULT_ROLES)}")

        admin = session.execute(select(User).where(User.username == ADMIN_USERNAME)).scalar_one_or_none()
        if admin is not None:
            admin.password_hash = hash_password(admin_password)
            admin.is_active = True
            session.commit()
            print("[INFO] Admin user exists, password updated")
            return 0

        admin_role = session.execute(select(Role).where(Role.name == "admin")).scalar_one()
        session.add(User(
            username=ADMIN_USERNAME,
            email="admin@localhost",
            full_name="Administrator",
            password_hash=hash_password(admin_password),
            user_type="system_admin",
            is_active=True,
            roles=[admin_role],
        ))
        session.commit()

        print("[OK] Created admin user: 'admin'")
        print()
        print("=" * 60)
        print("  AdminPanel initialized successfully!")
        print()
        print("  Admin login: admin / (your password)")
        print("  Run: adminpanel run")
        print("=" * 60)
        return 0

    except Exception as e:
        session.rollback()
        print(f"[ERROR] Seed data failed: {e}")
        return 1
    finally:
        session.close()


_ADJECTIVES = ["Classic", "Compact", "Deluxe", "Eco", "Pro", "Smart", "Ultra", "Vintage"]
_NOUNS = ["Backpack", "Bottle", "Chair", "Headphones", "Lamp", "Mug", "Notebook", "Speaker"]


def cmd_seed_products(args: argparse.Namespace) -> int:
    """Insert ``count`` products with random names and statuses."""
    if args.count <= 0:
        print("[ERROR] count must be a positive integer")
        return 1

    config = _load_config(args.config)

    from adminpanel.db.models import Product
    from adminpanel.db.session import init_db, session_scope

    init_db(config.database.url)
    rng = random.Random(args.seed)
    statuses = list(config.products.status.keys.values())

    with session_scope() as session:
        session.add_all([
            Product(
                name=f"{rng.choice(_ADJECTIVES)} {rng.choice(_NOUNS)} {rng.randint(100, 999)}",
                status=rng.choice(statuses),
            )
            for _ in range(args.count)
        ])

    print(f"[OK] Created {args.count} products")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """Start the Reflex dev server."""
    import subprocess

    print("Starting AdminPanel (Reflex) server...")
    try:
        cmd = [
            "reflex", "run",
            "--backend-host", args.host,
            "--frontend-port", str(args.port),
            "--backend-port", str(args.backend_port),
            "--env", args.env,
        ]
        result = subprocess.run(cmd, check=True)
        return result.returncode
    except FileNotFoundError:
        print("[ERROR] 'reflex' command not found. Install: pip install reflex")
        return 1
    except KeyboardInterrupt:
        print("\nServer stopped.")
        return 0


def cmd_worker(args: argparse.Namespace) -> int:
    """Start a Celery worker consuming the export queue."""
    import subprocess

    config = _load_config(args.config)

    print(f"Starting export worker on queue '{config.celery.export_queue}'...")
    try:
        cmd = [
            "celery",
            "-A", "adminpanel.exports.jobs:celery_app",
            "worker",
            "-Q", config.celery.export_queue,
            "--concurrency", str(config.celery.concurrency),
            "--loglevel", args.loglevel,
        ]
        result = subprocess.run(cmd, check=True)
        return result.returncode
    except FileNotFoundError:
        print("[ERROR] 'celery' command not found. Install: pip install celery[redis]")
        return 1
    except KeyboardInterrupt:
        print("\nWorker stopped.")
        return 0


def cmd_logs_cleanup(args: argparse.Namespace) -> int:
    """Compress and delete JSONL logs past their retention."""
    config = _load_config(args.config)

    from adminpanel.engine.runtime import PanelRuntime

    stats = PanelRuntime(config, connect_redis=False).cleanup_logs()
    print(f"[OK] Log cleanup: {stats}")
    return 0
