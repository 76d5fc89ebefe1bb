# ---------------------------------------------------------------------------
# Project : rasta
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – creates the first admin account.

Run once after the initial migration:
    python bin/seed_admin.py

The script reads FIRST_ADMIN_EMAIL, FIRST_ADMIN_USERNAME and
FIRST_ADMIN_PASSWORD from etc/app.conf.  After the row is inserted those
values are no longer used by the application.

The admin account is created already verified, so it can log in without
the email round trip.
"""

import sys
import os

# ---------------------------------------------------------------------------
# Path setup so backend modules are importable
# ---------------------------------------------------------------------------
# bin/seed_admin.py  →  ../  →  project root
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from rasta.core.config import Settings                         # noqa: E402
from rasta.core.errors import Conflict, ValidationFailed       # noqa: E402
from rasta.core.logger import configure_logging, logger        # noqa: E402
from rasta.core.security import build_hasher                   # noqa: E402
from rasta.database import build_engine, build_session_factory  # noqa: E402
from rasta.models.user import AccountType, RegionType          # noqa: E402
from rasta.services.user_service import UserService            # noqa: E402


def seed(settings: Settings) -> bool:
    """Create the admin; returns False when there was nothing to do."""
    if not settings.first_admin_email or not settings.first_admin_password:
        logger.warning("FIRST_ADMIN_EMAIL or FIRST_ADMIN_PASSWORD not set in etc/app.conf – nothing to do.")
        return False

    session_factory = build_session_factory(build_engine(settings))
    db = session_factory()
    try:
        users = UserService(db, build_hasher(settings))
        try:
            admin = users.create(
                first_name="Admin",
                last_name="Admin",
                username=settings.first_admin_username,
                email=settings.first_admin_email,
                password=settings.first_admin_password,
                region=RegionType.NORTHERN_AMERICA,
                account=AccountType.ADMIN,
                is_verified=True,
            )
        except Conflict:
            logger.info("Admin '%s' already exists – skipping.", settings.first_admin_email)
            return False
        except ValidationFailed as exc:
            logger.error("Cannot create admin: %s", exc.message)
            return False
        logger.info("Admin '%s' created successfully (id=%s).", admin.email, admin.id)
        return True
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging()
    seed(Settings())
