"""Program entry point (CLI dispatcher).

`python -m diaryseal.main` runs the command group; the batch tool is also
installed on its own as `diary-encrypt`.
"""
from __future__ import annotations
from diaryseal.cli.commands import cli

def main():  # pragma: no cover - thin wrapper
	cli()

if __name__ == '__main__':  # pragma: no cover
	main()
