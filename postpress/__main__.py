"""Entry point for the postpress CLI.

Allows running the builder with ``python -m postpress``.
"""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
