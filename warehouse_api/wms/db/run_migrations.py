"""
Run Alembic against the warehouse schema without an alembic.ini.

Usage examples:
    python -m wms.db.run_migrations upgrade head
    python -m wms.db.run_migrations downgrade -1
    python -m wms.db.run_migrations current
"""

import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple

from alembic import command
from alembic.config import Config

from wms.db.config import get_settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"

# command name -> (alembic function, default arguments)
COMMANDS: Dict[str, Tuple[Callable[..., object], Sequence[str]]] = {
    "upgrade": (command.upgrade, ("head",)),
    "downgrade": (command.downgrade, ("-1",)),
    "current": (command.current, ()),
    "history": (command.history, ()),
    "heads": (command.heads, ()),
    "show": (command.show, ("head",)),
    "stamp": (command.stamp, ("head",)),
}


def alembic_config() -> Config:
    """Alembic Config pointing at the bundled migrations and the configured database."""
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    # env.py builds its own async engine; this URL only serves offline mode.
    cfg.set_main_option("sqlalchemy.url", get_settings().sync_database_url)
    return cfg


# PUBLIC_INTERFACE
def upgrade_to_head() -> None:
    """Apply every pending migration."""
    logger.info("Upgrading database schema to head")
    command.upgrade(alembic_config(), "head")


# PUBLIC_INTERFACE
def main(argv: List[str] | None = None) -> None:
    """Dispatch `<command> [args...]` to Alembic."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        raise SystemExit(f"Usage: python -m wms.db.run_migrations <{'|'.join(COMMANDS)}> [args]")

    name, rest = args[0], args[1:]
    if name not in COMMANDS:
        raise SystemExit(f"Unsupported Alembic command: {name}")
    func, defaults = COMMANDS[name]
    func(alembic_config(), *(rest or defaults))


if __name__ == "__main__":
    main()
