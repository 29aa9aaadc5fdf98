#!/usr/bin/env python3
"""
Entry point for the Scan Summarizer CLI.

Usage:
    python main.py                               # Interactive mode
    python main.py receipt.jpg                   # Scan a specific file
    python main.py letter.pdf --length short     # Pick the summary length
    python main.py notes.txt --provider ollama   # Summarize with a local model
    python main.py --list                        # List saved notes
"""

from scan_summarizer.cli import main

if __name__ == "__main__":
    main()
