# run.py

"""
Universal entry point for the Graph NLP Platform.

Usage (from project root):
    python run.py annotate "Hello world" --id doc1
    python run.py run-workflow workflow.yaml

This script simply delegates to the CLI application defined in tools/cli.py.
"""

from tools.cli import app

if __name__ == "__main__":
    app()
