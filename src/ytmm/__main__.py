"""Allow running as python -m ytmm."""

from ytmm.cli import main

if __name__ == "__main__":
    main()
