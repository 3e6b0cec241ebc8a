"""Entry point for 'python -m webauthz_token'."""

from webauthz_token.cli import main

if __name__ == "__main__":
    main()
