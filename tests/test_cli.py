"""
Tests for the command line front end.

Runs the CLI offline (provider 'none') against text files, with the notes
file redirected into a temporary directory.
"""

from pathlib import Path

import pytest
from unittest.mock import Mock, patch

from scan_summarizer import cli
from scan_summarizer.extractive import LengthTier
from scan_summarizer.notes import NoteStore

DOCUMENT = (
    "Quarterly report for the north office. Revenue grew by ten percent. "
    "The key result is a new contract. Staff numbers were stable. Travel costs fell."
)


@pytest.fixture
def notes_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "notes.json"
    monkeypatch.setenv("SCAN_SUMMARIZER_NOTES", str(path))
    monkeypatch.setenv("SCAN_SUMMARIZER_PROVIDER", "none")
    monkeypatch.delenv("SCAN_SUMMARIZER_LENGTH", raising=False)
    return path


@pytest.fixture(autouse=True)
def no_dotenv():
    with patch("scan_summarizer.cli.load_dotenv"):
        yield


@pytest.fixture
def document(tmp_path: Path) -> Path:
    path = tmp_path / "report.txt"
    path.write_text(DOCUMENT, encoding="utf-8")
    return path


# ============================================================================
# Scan Flow Tests
# ============================================================================

def test_scan_saves_note(notes_path: Path, document: Path, capsys: pytest.CaptureFixture[str]):
    """Test a full offline scan prints and stores the summary."""
    cli.main([str(document), "--length", "short"])

    out = capsys.readouterr().out
    notes = NoteStore(notes_path).all()

    assert len(notes) == 1
    note = notes[0]
    assert note.title == "Quarterly report for the north office"
    assert note.summary == "Quarterly report for the north office. The key result is a new contract."
    assert note.full_text == DOCUMENT
    assert note.length == "short"
    assert note.summary in out
    assert f"Saved note {note.id}" in out


def test_scan_no_save(notes_path: Path, document: Path):
    """Test --no-save leaves the notes file alone."""
    with pytest.raises(SystemExit) as exc_info:
        cli.main([str(document), "--length", "large", "--no-save"])

    assert exc_info.value.code == 0
    assert not notes_path.exists()


def test_scan_prompts_for_length(notes_path: Path, document: Path, monkeypatch: pytest.MonkeyPatch):
    """Test the length is asked for when not given."""
    monkeypatch.setattr("builtins.input", lambda prompt: "3")

    cli.main([str(document)])

    assert NoteStore(notes_path).all()[0].length == "large"


def test_scan_blank_document_exits(notes_path: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    """Test blank recognized text stops the flow."""
    blank = tmp_path / "blank.txt"
    blank.write_text("   \n", encoding="utf-8")

    with pytest.raises(SystemExit) as exc_info:
        cli.main([str(blank), "--length", "short"])

    assert exc_info.value.code == 1
    assert "No text found to summarize" in capsys.readouterr().out


def test_scan_punctuation_only_document_exits(notes_path: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    """Test text without sentences is reported instead of crashing."""
    dots = tmp_path / "dots.txt"
    dots.write_text(". . . !!!", encoding="utf-8")

    with pytest.raises(SystemExit) as exc_info:
        cli.main([str(dots), "--length", "short"])

    assert exc_info.value.code == 1
    assert "No text found to summarize" in capsys.readouterr().out


def test_scan_missing_file_exits(notes_path: Path, capsys: pytest.CaptureFixture[str]):
    """Test extraction errors are reported."""
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["/nonexistent/scan.txt", "--length", "short"])

    assert exc_info.value.code == 1
    assert "Error extracting text" in capsys.readouterr().out


@patch("scan_summarizer.config.create_backend")
def test_scan_unavailable_provider_falls_back(
    mock_create: Mock,
    notes_path: Path,
    document: Path,
    capsys: pytest.CaptureFixture[str]
):
    """Test a provider that can't start still produces an offline summary."""
    mock_create.side_effect = ValueError("OPENAI_API_KEY not found in environment")

    cli.main([str(document), "--length", "short", "--provider", "openai"])

    assert "(offline)" in capsys.readouterr().out
    assert NoteStore(notes_path).all()[0].summary.startswith("Quarterly report")


def test_invalid_provider_setting_exits(notes_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Test a bad provider in the environment is reported."""
    monkeypatch.setenv("SCAN_SUMMARIZER_PROVIDER", "llamafile")

    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--list"])

    assert exc_info.value.code == 1


# ============================================================================
# Note Management Tests
# ============================================================================

def test_list_without_notes(notes_path: Path, capsys: pytest.CaptureFixture[str]):
    """Test listing an empty store."""
    with pytest.raises(SystemExit):
        cli.main(["--list"])

    assert "No saved notes yet" in capsys.readouterr().out


def test_list_show_and_delete(notes_path: Path, document: Path, capsys: pytest.CaptureFixture[str]):
    """Test managing a saved note."""
    cli.main([str(document), "--length", "medium"])
    note = NoteStore(notes_path).all()[0]
    capsys.readouterr()

    with pytest.raises(SystemExit):
        cli.main(["--list"])
    assert note.id in capsys.readouterr().out

    with pytest.raises(SystemExit):
        cli.main(["--show", note.id])
    assert "Full Text:" in capsys.readouterr().out

    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--delete", note.id])
    assert exc_info.value.code == 0
    assert NoteStore(notes_path).all() == []


@pytest.mark.parametrize("flag", ["--show", "--delete"])
def test_unknown_note_id(notes_path: Path, flag: str, capsys: pytest.CaptureFixture[str]):
    """Test unknown ids are reported."""
    with pytest.raises(SystemExit) as exc_info:
        cli.main([flag, "404"])

    assert exc_info.value.code == 1
    assert "Note not found" in capsys.readouterr().out


# ============================================================================
# Prompt Tests
# ============================================================================

def test_get_length_choice_default(monkeypatch: pytest.MonkeyPatch):
    """Test pressing enter picks the default tier."""
    monkeypatch.setattr("builtins.input", lambda prompt: "")

    assert cli.get_length_choice(LengthTier.SHORT) is LengthTier.SHORT


def test_get_length_choice_retries(monkeypatch: pytest.MonkeyPatch):
    """Test invalid answers are asked again."""
    answers = iter(["9", "x", "1"])
    monkeypatch.setattr("builtins.input", lambda prompt: next(answers))

    assert cli.get_length_choice() is LengthTier.SHORT


def test_get_source_input_retries(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Test missing files are asked again."""
    existing = tmp_path / "scan.png"
    existing.write_bytes(b"")
    answers = iter(["", str(tmp_path / "missing.png"), str(existing)])
    monkeypatch.setattr("builtins.input", lambda prompt: next(answers))

    assert cli.get_source_input() == str(existing)
