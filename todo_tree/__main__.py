"""
Entry point for `python -m todo_tree`.
"""

from todo_tree.cli import main


if __name__ == "__main__":
    main()
