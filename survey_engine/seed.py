"""
Load instrument definitions from JSON files into the catalog.

    survey-seed data/instruments/*.json --create-tables --skip-existing
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

from pydantic import ValidationError

from survey_engine.core.config import settings
from survey_engine.core.database import SessionLocal, init_db
from survey_engine.core.exceptions import SurveyError
from survey_engine.models.schemas import InstrumentDefinition
from survey_engine.services.registration import register_many

logger = logging.getLogger(__name__)

def load_definitions(path: Path) -> List[InstrumentDefinition]:
    """A file holds one definition object or a list of them."""
    with path.open("r", encoding="utf-8") as f:
        doc = json.load(f)
    docs = doc if isinstance(doc, list) else [doc]
    return [InstrumentDefinition.model_validate(d) for d in docs]

def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Register survey instruments from JSON definition files")
    ap.add_argument("paths", nargs="+", type=Path)
    ap.add_argument("--create-tables", action="store_true", help="create missing tables first")
    ap.add_argument("--skip-existing", action="store_true", help="skip codes that are already registered")
    args = ap.parse_args(argv)

    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO), format="%(levelname)s %(name)s: %(message)s")
    if args.create_tables:
        init_db()

    definitions: List[InstrumentDefinition] = []
    for path in args.paths:
        try:
            definitions.extend(load_definitions(path))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Cannot load {path}: {e}")
            return 2

    db = SessionLocal()
    try:
        registered = register_many(db, definitions, skip_existing=args.skip_existing)
    except SurveyError as e:
        logger.error(f"Registration failed: {e.message} {e.details or ''}")
        return 1
    finally:
        db.close()

    for r in registered:
        print(f"registered {r.code} id={r.id} questions={r.question_count} bands={r.band_count}")
    return 0

if __name__ == "__main__":
    sys.exit(main())
