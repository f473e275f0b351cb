#!/usr/bin/env python3
"""One-off script to apply a changes JSON file to a resume PDF."""

import asyncio
import json
import logging
import sys
from dotenv import load_dotenv

load_dotenv()

from resume_patcher.core.diagnostics import CollectingObserver
from resume_patcher.services.change_applier import apply_changes_to_resume
from resume_patcher.services.change_proposals import normalize_changes

logging.basicConfig(level=logging.INFO)


async def main(resume_path: str, changes_path: str, output_path: str):
    with open(resume_path, "rb") as f:
        pdf_bytes = f.read()
    with open(changes_path) as f:
        payload = json.load(f)

    # Accept either a bare list or a full optimization result
    raw_changes = payload.get("detailedChanges", []) if isinstance(payload, dict) else payload
    changes = normalize_changes(raw_changes)
    print(f"Resume:  {resume_path}")
    print(f"Changes: {len(changes)} selected from {changes_path}")

    observer = CollectingObserver()
    outcome = await apply_changes_to_resume(pdf_bytes, changes, observer=observer)

    with open(output_path, "wb") as f:
        f.write(outcome.pdf_bytes)

    print("\n" + "=" * 70)
    print("RESULT")
    print("=" * 70)
    print(f"  strategy: {outcome.strategy}")
    print(f"  applied:  {outcome.applied}")
    if outcome.failure:
        print(f"  patch failure: {outcome.failure}")
    for event in observer.events:
        print(f"  [{event.kind}] {event.message}")
    print(f"\nOutput saved: {output_path} ({len(outcome.pdf_bytes) / 1024:.1f} KB)")


if __name__ == "__main__":
    if len(sys.argv) != 4:
        print("Usage: python run_patch.py <resume.pdf> <changes.json> <output.pdf>")
        sys.exit(1)
    asyncio.run(main(sys.argv[1], sys.argv[2], sys.argv[3]))
