"""
Command line front end for scanning and summarizing documents.

Allows users to:
- Scan a document (image, PDF, DOCX, text) and extract its text
- Choose a summary length (short, medium, large)
- Summarize with a generative backend, or the built-in extractive fallback
- Save the result as a note, then list, show or delete saved notes
"""

from dataclasses import replace
from pathlib import Path
import argparse
import sys

from dotenv import load_dotenv

from .config import PROVIDERS, Settings
from .engine import SummaryEngine, SummaryResult
from .errors import EmptyInputError
from .extractive import LengthTier
from .extractors import extract_text, needs_ocr
from .gate import BackendGate, BackendState
from .logging_config import setup_logging
from .notes import Note, NoteStore
from .ocr import TesseractOCR


def print_header() -> None:
    """Print CLI header."""
    print("\n" + "=" * 60)
    print("📄 Scan Summarizer")
    print("=" * 60 + "\n")


def print_separator() -> None:
    """Print section separator."""
    print("\n" + "-" * 60 + "\n")


def get_source_input() -> str:
    """
    Prompt user for the document to scan.

    Returns:
        Path to an existing file
    """
    print("Enter document to scan:")
    print("  • Image (JPG, PNG, TIFF, ...)")
    print("  • PDF, DOCX or text file")
    print()

    while True:
        source: str = input("Source: ").strip()

        if not source:
            print("❌ Please enter a valid source\n")
            continue

        source_path = Path(source).expanduser()
        if not source_path.exists():
            print(f"❌ File not found: {source}\n")
            continue

        return str(source_path)


def get_length_choice(default: LengthTier = LengthTier.MEDIUM) -> LengthTier:
    """
    Ask how detailed the summary should be.

    Returns:
        Chosen length tier
    """
    tiers: list[LengthTier] = list(LengthTier)
    default_choice: str = str(tiers.index(default) + 1)

    print("How detailed would you like the summary to be?")
    print(f"  1. Short ({LengthTier.SHORT.target} sentences)")
    print(f"  2. Medium ({LengthTier.MEDIUM.target} sentences)")
    print(f"  3. Large ({LengthTier.LARGE.target} sentences)")
    print()

    while True:
        choice: str = input(f"Choice [{default_choice}]: ").strip() or default_choice

        if choice in ("1", "2", "3"):
            return tiers[int(choice) - 1]
        print("❌ Invalid choice. Please enter 1, 2, or 3\n")


def extract_document_text(source: str, ocr_engine: TesseractOCR) -> str:
    """
    Extract text from the document, exiting on failure.

    Args:
        source: File path
        ocr_engine: OCR engine to use for images/PDFs

    Returns:
        Extracted text
    """
    print_separator()
    if needs_ocr(source):
        print("📷 Recognizing text...")
    else:
        print("📖 Reading document...")

    try:
        text: str = extract_text(source, ocr_engine=ocr_engine)
    except Exception as e:
        print(f"❌ Error extracting text: {e}")
        sys.exit(1)

    if not text.strip():
        print("❌ No text found to summarize")
        sys.exit(1)

    print(f"✅ Extracted {len(text)} characters")
    print(f"   Preview: {text[:200]}...")
    return text


def summarize_document(gate: BackendGate, text: str, tier: LengthTier) -> SummaryResult:
    """
    Summarize text, echoing generated tokens as they arrive.

    Args:
        gate: Backend gate routing the request
        text: Recognized text
        tier: Summary length

    Returns:
        Summary and title

    Raises:
        EmptyInputError: If the text contains no sentences
    """
    print_separator()
    if gate.initialize() is BackendState.READY:
        print(f"🤖 Generating {tier.value} summary...\n")
    else:
        print(f"📝 Generating {tier.value} summary (offline)...\n")

    result: SummaryResult = gate.analyze(
        text, tier, on_token=lambda token: print(token, end="", flush=True)
    )
    print("\n")
    return result


def print_note(note: Note) -> None:
    """Print a saved note in full."""
    print(note.share_text())
    print(f"\nCreated: {note.created_at}  (id {note.id}, {note.length})")


def list_notes(store: NoteStore) -> None:
    """Print one line per saved note, newest first."""
    notes: list[Note] = store.all()
    if not notes:
        print("No saved notes yet")
        return

    for note in notes:
        print(f"{note.id}  {note.created_at[:10]}  {note.title}")


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Scan Summarizer - Extract text from scans and summarize it into notes"
    )
    parser.add_argument(
        "source",
        nargs="?",
        help="Document to scan. If not provided, will prompt interactively."
    )
    parser.add_argument(
        "--length",
        choices=[tier.value for tier in LengthTier],
        help="Summary length. If not provided, will prompt interactively."
    )
    parser.add_argument(
        "--provider",
        choices=PROVIDERS,
        default=settings.provider,
        help=f"Generative backend; 'none' uses extractive summaries only (default: {settings.provider})"
    )
    parser.add_argument(
        "--lang",
        default="eng",
        help="Tesseract language code (default: eng)"
    )
    parser.add_argument(
        "--no-save",
        action="store_true",
        help="Print the summary without saving a note"
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List saved notes and exit"
    )
    parser.add_argument(
        "--show",
        metavar="NOTE_ID",
        help="Print a saved note and exit"
    )
    parser.add_argument(
        "--delete",
        metavar="NOTE_ID",
        help="Delete a saved note and exit"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.debug,
        help="Show debug logging"
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    # Load environment variables from .env file if it exists
    load_dotenv()

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"❌ Invalid configuration: {e}")
        sys.exit(1)

    args = build_parser(settings).parse_args(argv)
    setup_logging(debug=args.debug)

    store = NoteStore(settings.notes_path)

    if args.list:
        list_notes(store)
        sys.exit(0)

    if args.show:
        note = store.get(args.show)
        if note is None:
            print(f"❌ Note not found: {args.show}")
            sys.exit(1)
        print_note(note)
        sys.exit(0)

    if args.delete:
        if not store.delete(args.delete):
            print(f"❌ Note not found: {args.delete}")
            sys.exit(1)
        print(f"✅ Deleted note {args.delete}")
        sys.exit(0)

    print_header()

    if args.source:
        source: str = args.source
        print(f"📄 Source: {source}")
    else:
        source = get_source_input()

    document_text: str = extract_document_text(source, TesseractOCR(language=args.lang))

    print_separator()
    tier: LengthTier = (
        LengthTier.from_value(args.length) if args.length
        else get_length_choice(settings.default_length)
    )

    gate = BackendGate(
        SummaryEngine(),
        backend_factory=replace(settings, provider=args.provider).backend_factory()
    )

    try:
        result: SummaryResult = summarize_document(gate, document_text, tier)
    except EmptyInputError as e:
        print(f"❌ {e}")
        sys.exit(1)

    print(f"🏷️  {result.title}")

    if args.no_save:
        sys.exit(0)

    try:
        note = store.add(result, full_text=document_text, length=tier)
    except (OSError, ValueError) as e:
        print(f"❌ Failed to save note: {e}")
        sys.exit(1)

    print(f"✅ Saved note {note.id} to {store.path}")


if __name__ == "__main__":
    main()
