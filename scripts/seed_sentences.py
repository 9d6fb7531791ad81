#!/usr/bin/env python3
"""
VoiceCorpus Sentence Seeder

Reads a UTF-8 text file with one sentence per line and loads it into the
sentence catalog.  Line N (ignoring blank lines) becomes sentence id N.
Ids that already exist are skipped so the script is safe to run multiple
times (idempotent); use ``--contributor`` to register contributors too.

Usage:
    python scripts/seed_sentences.py data/sentences.txt
    python scripts/seed_sentences.py data/sentences.txt --contributor ann:"Ann Lee"
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Ensure project root is on sys.path for ``src`` imports
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.core.exceptions import VoiceCorpusError  # noqa: E402
from src.services.storage.database import close_db, get_session, init_db  # noqa: E402
from src.services.storage.repository import RecordingRepository  # noqa: E402


def read_sentences(path: Path) -> list[str]:
    """Return the non-blank, stripped lines of *path*."""
    return [line.strip() for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


async def seed(path: Path, contributors: list[tuple[str, str]]) -> int:
    """Load sentences (and optional contributors) into the database.

    Returns:
        Exit code: 0 on success, 1 if the sentence file is missing.
    """
    if not path.is_file():
        print(f"Sentence file not found: {path}")
        return 1

    await init_db()
    sentences = read_sentences(path)
    created = 0
    skipped = 0

    async with get_session() as session:
        repo = RecordingRepository(session)

        for sentence_id, text in enumerate(sentences, start=1):
            # Idempotent: skip if this ordinal already exists
            if await repo.get_sentence(sentence_id) is not None:
                skipped += 1
                continue
            await repo.add_sentence(text, sentence_id=sentence_id)
            created += 1

        for name, display_name in contributors:
            try:
                await repo.create_contributor(name, display_name)
                print(f"  ADD   contributor {name}")
            except VoiceCorpusError as exc:
                print(f"  SKIP  contributor {name} ({exc.detail})")

    await close_db()
    print(f"\nDone: {created} sentences created, {skipped} skipped.")
    return 0


def _parse_contributor(value: str) -> tuple[str, str]:
    name, _, display_name = value.partition(":")
    if not display_name:
        raise argparse.ArgumentTypeError("expected NAME:DISPLAY_NAME")
    return name.strip(), display_name.strip()


def main() -> int:
    """CLI entry point; parse arguments and run the async seed coroutine."""
    parser = argparse.ArgumentParser(description="Load the VoiceCorpus sentence catalog.")
    parser.add_argument("file", type=Path, help="Text file, one sentence per line")
    parser.add_argument(
        "--contributor",
        action="append",
        default=[],
        type=_parse_contributor,
        metavar="NAME:DISPLAY_NAME",
        help="Also register a contributor (repeatable)",
    )
    args = parser.parse_args()

    print("VoiceCorpus Sentence Seeder")
    print(f"Sentence file: {args.file}\n")
    return asyncio.run(seed(args.file, args.contributor))


if __name__ == "__main__":
    sys.exit(main())
