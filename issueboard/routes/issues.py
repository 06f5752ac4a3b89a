from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from issueboard.errors import NotFoundError, ValidationError
from issueboard.optimistic import UpdateOutcome
from issueboard.query.filtering import FilterCriteria
from issueboard.query.sorting import SortDirection, SortField
from issueboard.schemas import (
    CommentCreate,
    DashboardSummary,
    Issue,
    IssueCreate,
    IssuePriority,
    IssueStatus,
    IssueType,
    IssueUpdate,
    TransitionRequest,
    UpdateOutcomeResponse,
)
from issueboard.workspace import IssueWorkspace

router = APIRouter(prefix="/api/v1/issues", tags=["issues"])


def get_workspace(request: Request) -> IssueWorkspace:
    return request.app.state.workspace


def get_criteria(
    status_: list[IssueStatus] = Query(default=[], alias="status"),
    priority: list[IssuePriority] = Query(default=[]),
    type_: list[IssueType] = Query(default=[], alias="type"),
    assignee: list[str] = Query(default=[]),
) -> FilterCriteria:
    return FilterCriteria.from_mapping(
        {"status": status_, "priority": priority, "type": type_, "assignee": assignee}
    )


def _not_found(exc: NotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _invalid(exc: ValidationError) -> HTTPException:
    return HTTPException(status_code=422, detail=str(exc))


def _respond(outcome: UpdateOutcome) -> UpdateOutcomeResponse:
    """Turn an optimistic outcome into a response; failed persistence is a 502."""
    if not outcome.succeeded:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(outcome.error))
    return UpdateOutcomeResponse(succeeded=True, issue=outcome.issue)


@router.get("/", response_model=list[Issue])
async def list_issues(
    criteria: FilterCriteria = Depends(get_criteria),
    sort: SortField = SortField.UPDATED_AT,
    order: SortDirection = SortDirection.DESC,
    q: Optional[str] = None,
    workspace: IssueWorkspace = Depends(get_workspace),
):
    """List issues, filtered, searched and sorted. A ``q`` search is kept in the history."""
    if q is not None:
        return workspace.search(q, criteria, sort, order)
    return workspace.view(criteria, sort, order)


@router.get("/board")
async def get_board(
    criteria: FilterCriteria = Depends(get_criteria),
    workspace: IssueWorkspace = Depends(get_workspace),
):
    """Issues grouped into kanban columns"""
    return [
        {"status": column.status, "title": column.title, "count": column.count, "issues": column.issues}
        for column in workspace.board(criteria)
    ]


@router.get("/summary", response_model=DashboardSummary)
async def get_summary(workspace: IssueWorkspace = Depends(get_workspace)):
    return workspace.summary()


@router.get("/search-history", response_model=list[str])
async def get_search_history(workspace: IssueWorkspace = Depends(get_workspace)):
    return workspace.search_history.queries


@router.get("/{issue_id}", response_model=Issue, status_code=status.HTTP_200_OK)
async def get_issue(issue_id: int, workspace: IssueWorkspace = Depends(get_workspace)):
    """Get issue by ID"""
    try:
        return workspace.get(issue_id)
    except NotFoundError as exc:
        raise _not_found(exc)


@router.post("/", response_model=UpdateOutcomeResponse, status_code=status.HTTP_201_CREATED)
async def create_issue(payload: IssueCreate, workspace: IssueWorkspace = Depends(get_workspace)):
    """Create new issue"""
    try:
        outcome = await workspace.create(payload)
    except ValidationError as exc:
        raise _invalid(exc)
    return _respond(outcome)


@router.patch("/{issue_id}", response_model=UpdateOutcomeResponse)
async def update_issue(
    issue_id: int, payload: IssueUpdate, workspace: IssueWorkspace = Depends(get_workspace)
):
    """Update issue by ID"""
    try:
        outcome = await workspace.edit(issue_id, payload)
    except NotFoundError as exc:
        raise _not_found(exc)
    except ValidationError as exc:
        raise _invalid(exc)
    return _respond(outcome)


@router.post("/{issue_id}/transition", response_model=UpdateOutcomeResponse)
async def transition_issue(
    issue_id: int, payload: TransitionRequest, workspace: IssueWorkspace = Depends(get_workspace)
):
    """Move an issue to another workflow status"""
    try:
        outcome = await workspace.transition(issue_id, payload.status)
    except NotFoundError as exc:
        raise _not_found(exc)
    return _respond(outcome)


@router.post(
    "/{issue_id}/comments",
    response_model=UpdateOutcomeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    issue_id: int, payload: CommentCreate, workspace: IssueWorkspace = Depends(get_workspace)
):
    try:
        outcome = await workspace.add_comment(issue_id, payload.content, payload.author)
    except NotFoundError as exc:
        raise _not_found(exc)
    except ValidationError as exc:
        raise _invalid(exc)
    return _respond(outcome)


@router.delete("/{issue_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_issue(issue_id: int, workspace: IssueWorkspace = Depends(get_workspace)):
    """Delete issue by ID"""
    try:
        outcome = await workspace.delete(issue_id)
    except NotFoundError as exc:
        raise _not_found(exc)
    _respond(outcome)
