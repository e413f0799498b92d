"""Todo manager - command-line application (MongoDB)."""
import argparse
import logging
import sys

from pymongo.errors import PyMongoError
from tabulate import tabulate

from db import connect, load_config
from models import (
    STATUS_PENDING,
    STATUSES,
    DeleteOutcome,
    StoreOperationError,
    Todo,
    TodoError,
    UpdateOutcome,
    list_filter,
    parse_object_id,
    parse_update_argument,
)

logger = logging.getLogger(__name__)

CREATE_HELP = 'create a todo: enter description. e.g. todo --create "get milk"'
LIST_HELP = "list all, pending or completed todos. e.g. todo --list <criteria> (criteria can be all, pending or completed)"
UPDATE_HELP = "update a todo: enter todo ID and new status e.g. todo --update <id>,<new status>"
DELETE_HELP = "delete a todo: enter todo ID e.g. todo --delete <id>"

TABLE_HEADERS = ("ID", "Description", "Status")


# ---------- Operations ----------

def create_todo(config, description):
    """Insert a pending todo. Returns the stored Todo, or None for an empty description."""
    if not description:
        return None
    todo = Todo(description=description, status=STATUS_PENDING)
    with connect(config) as todos:
        try:
            r = todos.insert_one(todo.to_document())
        except PyMongoError as e:
            raise StoreOperationError(f"failed to add todo: {e}") from e
    todo.id = r.inserted_id
    logger.debug("inserted todo %s", todo.id)
    return todo


def list_todos(config, criterion):
    """Todos matching criterion (all, pending or completed)."""
    return find_todos(config, list_filter(criterion))


def find_todos(config, q):
    """Todos matching a Mongo filter; the cursor is drained before the client closes."""
    with connect(config) as todos:
        try:
            docs = list(todos.find(q))
        except PyMongoError as e:
            raise StoreOperationError(f"failed to list todo(s): {e}") from e
    logger.debug("found %d todo(s) for %r", len(docs), q)
    return [Todo.from_document(d) for d in docs]


def update_todo(config, todo_id, new_status):
    """Set the status of one todo (hex id or ObjectId). Any status string is stored as given."""
    oid = parse_object_id(todo_id)
    if new_status not in STATUSES:
        logger.warning("status %r is not one of %s; storing it anyway", new_status, ", ".join(STATUSES))
    with connect(config) as todos:
        try:
            r = todos.update_one({"_id": oid}, {"$set": {"status": new_status}})
        except PyMongoError as e:
            raise StoreOperationError(f"failed to update todo: {e}") from e
    if not r.matched_count:
        logger.warning("no todo with ID %s", oid)
    return UpdateOutcome(matched=bool(r.matched_count))


def delete_todo(config, todo_id):
    """Remove at most one todo by hex id or ObjectId."""
    oid = parse_object_id(todo_id)
    with connect(config) as todos:
        try:
            r = todos.delete_one({"_id": oid})
        except PyMongoError as e:
            raise StoreOperationError(f"failed to delete todo: {e}") from e
    if not r.deleted_count:
        logger.warning("no todo with ID %s", oid)
    return DeleteOutcome(deleted=bool(r.deleted_count))


# ---------- Output ----------

def render_table(todos):
    """Grid table with ID, Description and Status columns."""
    rows = [[str(t.id), str(t.description), str(t.status)] for t in todos]
    # ids like 000000000000000000000001 must stay text
    return tabulate(rows, headers=TABLE_HEADERS, tablefmt="grid", disable_numparse=True)


# ---------- Commands ----------

def _cmd_create(description):
    todo = create_todo(load_config(), description)
    if todo is not None:
        print("added todo", todo.id)


def _cmd_list(criterion):
    q = list_filter(criterion)
    todos = find_todos(load_config(), q)
    if not todos:
        print("no todos found")
        return
    print(render_table(todos))


def _cmd_update(info):
    todo_id, new_status = parse_update_argument(info)
    oid = parse_object_id(todo_id)
    update_todo(load_config(), oid, new_status)


def _cmd_delete(todo_id):
    oid = parse_object_id(todo_id)
    delete_todo(load_config(), oid)


def build_parser():
    parser = argparse.ArgumentParser(prog="todo", description="Manage todos stored in MongoDB.")
    parser.add_argument("--create", default="", metavar="TEXT", help=CREATE_HELP)
    parser.add_argument("--list", default="", metavar="CRITERIA", help=LIST_HELP)
    parser.add_argument("--update", default="", metavar="ID,STATUS", help=UPDATE_HELP)
    parser.add_argument("--delete", default="", metavar="ID", help=DELETE_HELP)
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output to stderr")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    # first non-empty flag wins
    commands = [
        (args.create, _cmd_create),
        (args.list, _cmd_list),
        (args.update, _cmd_update),
        (args.delete, _cmd_delete),
    ]
    for value, command in commands:
        if value:
            break
    else:
        parser.print_usage(sys.stderr)
        return 2
    try:
        command(value)
    except TodoError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
