"""Issue Board.

An issue tracking workspace with:
- An in-memory issue store with optimistic updates and rollback
- A kanban status workflow with drag-and-drop semantics
- Filter, sort and search over the issue collection
- Comments persisted as a single text blob
- SQLAlchemy persistence with async support
- Slack notifications
"""
