"""
api/routes/todos.py -- Owner-scoped task CRUD routes.

Routes:
  POST   /todos             -- create a task for the caller
  GET    /todos             -- list the caller's tasks, newest first
  GET    /todos/{todo_id}   -- one task
  PUT    /todos/{todo_id}   -- partial update (title and/or completed)
  DELETE /todos/{todo_id}   -- delete

Every handler takes `principal: Principal = Depends(require_principal)` and
hands it to TodoStore, which binds it into every query. Handlers never accept
an owner id from the path, query, or body.

Error mapping (TodoVaultError handler in api/main.py):
  non-integer or out-of-range id, bad body, empty patch -> 400
  missing/invalid/expired token                         -> 401
  missing OR someone else's task                        -> 404 (identical)
  StoreError                                            -> 500
"""

from fastapi import APIRouter, Depends, Path, Request

from api.models import DeleteResponse, TodoCreate, TodoResponse, TodoUpdate
from auth.dependencies import require_principal
from auth.models import Principal
from todos.models import TaskPatch
from todos.store import TODO_ID_MAX, TodoStore

# Auth policy: every route on this router requires a bearer token.
router = APIRouter(prefix="/todos")


@router.post("", response_model=TodoResponse, status_code=201)
def create_todo(
    request: Request,
    body: TodoCreate,
    principal: Principal = Depends(require_principal),
) -> TodoResponse:
    """Create a task owned by the caller. completed defaults to false."""
    store: TodoStore = request.app.state.todo_store
    task = store.create(principal, body.title, body.completed)
    return TodoResponse.from_task(task)


@router.get("", response_model=list[TodoResponse])
def list_todos(
    request: Request,
    principal: Principal = Depends(require_principal),
) -> list[TodoResponse]:
    """Return the caller's tasks, newest-created first. Empty list if none."""
    store: TodoStore = request.app.state.todo_store
    return [TodoResponse.from_task(t) for t in store.list_all(principal)]


@router.get("/{todo_id}", response_model=TodoResponse)
def get_todo(
    request: Request,
    todo_id: int = Path(gt=0, le=TODO_ID_MAX),
    principal: Principal = Depends(require_principal),
) -> TodoResponse:
    store: TodoStore = request.app.state.todo_store
    return TodoResponse.from_task(store.get(principal, todo_id))


@router.put("/{todo_id}", response_model=TodoResponse)
def update_todo(
    request: Request,
    body: TodoUpdate,
    todo_id: int = Path(gt=0, le=TODO_ID_MAX),
    principal: Principal = Depends(require_principal),
) -> TodoResponse:
    """Update title and/or completed. Fields left out (or null) keep their value."""
    store: TodoStore = request.app.state.todo_store
    patch = TaskPatch(title=body.title, completed=body.completed)
    return TodoResponse.from_task(store.update(principal, todo_id, patch))


@router.delete("/{todo_id}", response_model=DeleteResponse)
def delete_todo(
    request: Request,
    todo_id: int = Path(gt=0, le=TODO_ID_MAX),
    principal: Principal = Depends(require_principal),
) -> DeleteResponse:
    store: TodoStore = request.app.state.todo_store
    store.delete(principal, todo_id)
    return DeleteResponse(message="Todo deleted.", id=todo_id)
