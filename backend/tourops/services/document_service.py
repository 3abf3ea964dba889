# Overview: Atomic document number allocation (invoice numbers).

from __future__ import annotations

from typing import Callable

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DocumentSequence
from .concurrency import run_with_retry


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


def format_document_number(prefix: str, number: int, pad: int) -> str:
    return f"{prefix}-{number:0{pad}d}"


def parse_document_number(value: str | None, prefix: str) -> int | None:
    """Numeric part of "<prefix>-NNN", or None for anything else."""
    if not value or not value.startswith(f"{prefix}-"):
        return None
    digits = value[len(prefix) + 1:]
    return int(digits) if digits.isdigit() else None


def _current_next_number(document_type: str) -> int:
    return (
        db.session.query(DocumentSequence.next_number)
        .filter_by(document_type=document_type)
        .scalar()
    )


def next_document_number(
    *,
    document_type: str,
    prefix: str,
    pad: int = 3,
    seed: Callable[[], int] | None = None,
) -> str:
    """
    Atomically allocate the next document number for a type.

    The UPDATE ... SET next_number = next_number + 1 takes a row lock on
    databases that support it, so two transactions never read the same value.
    On first use the row is created; `seed` returns the highest number already
    issued so legacy documents are never reissued.

    Must be called before anything else is staged in the session: a lost race
    on creating the sequence row rolls the session back.
    """
    if not document_type:
        raise DocumentSequenceError("document_type is required")
    if not prefix:
        raise DocumentSequenceError("prefix is required")

    def _op() -> str:
        stmt = (
            update(DocumentSequence)
            .where(DocumentSequence.document_type == document_type)
            .values(next_number=DocumentSequence.next_number + 1)
        )

        result = db.session.execute(stmt)
        if result.rowcount:
            db.session.flush()
            next_num = _current_next_number(document_type) - 1
        else:
            start = (seed() if seed else 0) + 1
            seq = DocumentSequence(document_type=document_type, next_number=start + 1)
            db.session.add(seq)
            try:
                db.session.flush()
                next_num = start
            except IntegrityError:
                db.session.rollback()
                result = db.session.execute(stmt)
                if not result.rowcount:
                    raise
                db.session.flush()
                next_num = _current_next_number(document_type) - 1

        return format_document_number(prefix, next_num, pad)

    return run_with_retry(_op)


def advance_document_sequence(*, document_type: str, floor: int) -> None:
    """
    Move the sequence past `floor` (the highest number known to be taken).

    Used after an insert collided with a document created outside the
    sequence. Never moves the sequence backwards.
    """
    def _op() -> None:
        stmt = (
            update(DocumentSequence)
            .where(
                DocumentSequence.document_type == document_type,
                DocumentSequence.next_number <= floor,
            )
            .values(next_number=floor + 1)
        )
        db.session.execute(stmt)
        db.session.commit()

    run_with_retry(_op)


def max_issued_number(column, prefix: str) -> int:
    """Highest numeric suffix among existing "<prefix>-NNN" values of `column`."""
    values = db.session.query(column).filter(column.like(f"{prefix}-%")).all()
    numbers = [parse_document_number(value, prefix) for (value,) in values]
    return max((n for n in numbers if n is not None), default=0)
