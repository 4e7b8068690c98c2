import argparse
import getpass
from typing import Optional

from app.access import AccessGate
from app.compiler import compile_clinical_data
from app.db import init_db, session_maker
from app.persistence import PersistenceManager, SqlKeyValueStore


def _open_store() -> SqlKeyValueStore:
    init_db()
    return SqlKeyValueStore(session_maker)


def list_saves(manager: PersistenceManager) -> None:
    manager.hydrate()
    names = sorted(manager.list_names())
    if not names:
        print("No saved notes")
        return
    for name in names:
        print(name)


def show_save(manager: PersistenceManager, name: str) -> None:
    bundle = manager.load(name)
    if bundle is None:
        raise SystemExit(f"No saved note named {name.strip()!r}")
    print(compile_clinical_data(bundle.form_state) or "(empty form)")
    if bundle.narrative:
        print()
        print(bundle.narrative)


def delete_save(manager: PersistenceManager, name: str) -> None:
    manager.delete(name)
    print(f"Deleted note {name.strip()!r}")


def set_access_code(gate: AccessGate, current: str, new: str) -> None:
    result = gate.change(current, new)
    if not result.success:
        raise SystemExit(result.message)
    print(result.message)


def _prompt_code(provided: Optional[str], prompt: str) -> str:
    if provided:
        return provided
    return getpass.getpass(prompt)


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Manage saved shift notes")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List saved notes")

    show_parser = subparsers.add_parser("show", help="Print the clinical data of a saved note")
    show_parser.add_argument("name", help="Name of the saved note")

    delete_parser = subparsers.add_parser("delete", help="Delete a saved note")
    delete_parser.add_argument("name", help="Name of the saved note")

    code_parser = subparsers.add_parser("set-access-code", help="Change the access code")
    code_parser.add_argument(
        "--current",
        help="Current access code; if omitted you will be prompted",
    )
    code_parser.add_argument(
        "--new",
        help="New access code; if omitted you will be prompted",
    )

    args = parser.parse_args(argv)
    store = _open_store()

    if args.command == "list":
        list_saves(PersistenceManager(store))
    elif args.command == "show":
        show_save(PersistenceManager(store), args.name)
    elif args.command == "delete":
        delete_save(PersistenceManager(store), args.name)
    elif args.command == "set-access-code":
        current = _prompt_code(args.current, "Current access code: ")
        new = _prompt_code(args.new, "New access code: ")
        set_access_code(AccessGate(store), current, new)


if __name__ == "__main__":
    main()
