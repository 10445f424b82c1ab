"""Package entry point for ``python -m bigfile_audio``.

WHY: Users run the extractor as ``python -m bigfile_audio <game folder>``.
Python's ``-m`` flag looks for ``__main__.py`` inside the package and
executes it.

HOW: Delegates to the CLI's main() function.
"""

if __name__ == "__main__":
    from bigfile_audio.cli import main
    main()
