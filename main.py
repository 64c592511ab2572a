import shlex
import sys

from statement_workbook.config import settings
from statement_workbook.output.file_transfer import DirectoryFileTransfer
from statement_workbook.services.workbook_session import WorkbookSession
from statement_workbook.utils.exceptions import WorkbookError
from statement_workbook.utils.logging import configure_logging

HELP = """\
Commands:
  show                 print the visible rows of the active sheet
  sheets               list sheets
  sheet <name>         switch sheet (unsaved edits are discarded)
  get <row> <col>      print one cell
  set <row> <col> <v>  change one cell
  export               save <name>_modified.<ext> into the output directory
  quit                 leave
"""


def run(path: str) -> None:
    session = WorkbookSession()
    transfer = DirectoryFileTransfer(settings.output_dir)
    session.load_path(path)
    print(f"Opened {session.source_filename}: {', '.join(session.sheet_names)}")
    print(HELP)

    while True:
        marker = "*" if session.is_dirty else ""
        try:
            line = input(f"{session.active_sheet}{marker}> ")
        except EOFError:
            break
        parts = shlex.split(line)
        if not parts:
            continue
        command, args = parts[0].lower(), parts[1:]
        if command in {"exit", "quit"}:
            if session.is_dirty:
                print("Unsaved changes discarded.")
            break

        try:
            if command == "show":
                view = session.view()
                print(view.to_dataframe().to_string())
                if view.notice:
                    print(view.notice)
            elif command == "sheets":
                for name in session.sheet_names:
                    active = " (active)" if name == session.active_sheet else ""
                    print(f"- {name}{active}")
            elif command == "sheet" and args:
                if session.is_dirty:
                    print("Unsaved changes on this sheet are discarded.")
                session.select_sheet(" ".join(args))
            elif command == "get" and len(args) == 2:
                print(repr(session.read_cell(int(args[0]), int(args[1]))))
            elif command == "set" and len(args) >= 2:
                value = " ".join(args[2:])
                session.write_cell(int(args[0]), int(args[1]), value)
            elif command == "export":
                encoded = session.export(transfer)
                print(f"Saved {transfer.directory / encoded.filename}")
            else:
                print(HELP)
        except WorkbookError as e:
            print(f"Error: {e}")
        except ValueError:
            print("Row and column must be integers.")


if __name__ == "__main__":
    configure_logging(level=settings.log_level_int)
    if len(sys.argv) < 2:
        print("Usage: python main.py <path/to/workbook.xlsx>")
        sys.exit(1)

    try:
        run(sys.argv[1])
    except WorkbookError as e:
        print(f"Error: {e}")
        sys.exit(1)
