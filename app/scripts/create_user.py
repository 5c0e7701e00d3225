"""
Create a user from the command line (e.g. the first administrator). Run from project root:
  python -m app.scripts.create_user EMAIL NOM PRENOM PASSWORD [--role ROLE_X ...] [--langue fr] [--theme dark]
Example:
  python -m app.scripts.create_user admin@example.com Martin Claire 'a-long-password' --role ROLE_ADMIN
Roles named with --role are created when they do not exist yet.
"""
import argparse
import logging
import sys

from app.core.config import settings
from app.core.database import session_scope
from app.core.exceptions import ConstraintViolationError, StoreError
from app.core.security import hash_password
from app.models import Preference, Role, User
from app.services.store import EntityStore
from app.services.validation import THEMES, validate

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a user with optional roles and preferences.")
    parser.add_argument("email", help="E-mail address (unique)")
    parser.add_argument("nom", help="Last name (2-50 chars)")
    parser.add_argument("prenom", help="First name (2-50 chars)")
    parser.add_argument("password", help="Password (8-4096 chars)")
    parser.add_argument(
        "--role",
        dest="roles",
        action="append",
        default=[],
        metavar="ROLE_NAME",
        help="Link a role (ROLE_ + uppercase letters/underscores); repeatable",
    )
    parser.add_argument("--langue", default=None, help="Create preferences with this language")
    parser.add_argument("--theme", default=None, choices=THEMES, help="Create preferences with this theme")
    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s %(name)s %(message)s")
    args = build_parser().parse_args(argv)

    user = User(
        email=args.email.strip(),
        nom=args.nom.strip(),
        prenom=args.prenom.strip(),
        password=args.password,
    )
    roles = [Role(nom=name) for name in dict.fromkeys(args.roles)]
    preference = None
    if args.langue is not None or args.theme is not None:
        preference = Preference(
            **{k: v for k, v in (("langue", args.langue), ("theme", args.theme)) if v is not None}
        )

    violations = validate(user)
    for role in roles:
        violations.extend(validate(role))
    if preference is not None:
        violations.extend(validate(preference))
    if violations:
        for violation in violations:
            print(f"{violation.path}: {violation.message}", file=sys.stderr)
        return 1

    user.password = hash_password(args.password)
    try:
        with session_scope() as db:
            store = EntityStore(db)
            for role in roles:
                existing = store.find_role_by_nom(role.nom)
                store.add_role(user, existing if existing is not None else role)
            if preference is not None:
                store.link_preference(user, preference)
            store.create(user)
            print(f"Created user '{user.email}' (id={user.id}) with roles {user.get_roles()}.")
    except ConstraintViolationError as e:
        for violation in e.violations:
            print(f"{violation.path}: {violation.message}", file=sys.stderr)
        return 1
    except StoreError as e:
        logger.exception("Could not create user: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
