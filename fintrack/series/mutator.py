"""
Series Mutator

Edits and deletes against one member of a series. The only decision
that matters here is scope:

- single:           exactly the target record (filter: id = target)
- series_from_here: the target and every later occurrence
                    (filter: series_id = S AND series_sequence >= n)

GUARANTEES:
- A scoped edit never touches occurrences before the target. Past
  occurrences are history; editing a recurring bill going forward
  does not rewrite them.
- Fields absent from the patch are untouched; fields explicitly set to
  None are cleared.
- Deleting the tail of a series does not renumber series_total on the
  remaining records.

There is no locking. Two racing edits on the same series resolve
record-by-record, last write wins.
"""

from typing import Any, Optional, Union
from uuid import UUID

import structlog

from fintrack.audit import AuditLogger
from fintrack.errors import InvalidScopeError, NotFoundError, ValidationError
from fintrack.models.filters import TransactionFilter
from fintrack.models.transaction import (
    ApplyMode,
    CloneRequest,
    DeleteRequest,
    SeriesMeta,
    SeriesType,
    Transaction,
    TransactionPatch,
    UpdateRequest,
)
from fintrack.services.storage import TransactionStoreInterface
from fintrack.validation.validator import parse_model

logger = structlog.get_logger(__name__)


def resolve_scope(
    target: Transaction,
    apply_mode: ApplyMode,
    series_meta: Optional[SeriesMeta] = None,
) -> TransactionFilter:
    """
    Build the store filter for a mutation on target.

    Raises:
        InvalidScopeError: series_from_here on a record with no series,
            or series_meta that points somewhere other than target
    """
    if apply_mode == ApplyMode.SINGLE:
        return TransactionFilter.by_id(target.id)

    if target.series_id is None:
        raise InvalidScopeError(
            f"Transaction {target.id} is not part of a series"
        )

    meta = series_meta or SeriesMeta(
        series_id=target.series_id,
        series_sequence=target.series_sequence,
    )
    if meta.series_id != target.series_id:
        raise InvalidScopeError(
            f"Transaction {target.id} does not belong to series {meta.series_id}"
        )
    if meta.series_sequence != target.series_sequence:
        raise InvalidScopeError(
            f"Transaction {target.id} is occurrence {target.series_sequence}, "
            f"not {meta.series_sequence}"
        )

    logger.debug(
        "series_scope_resolved",
        series_id=str(meta.series_id),
        from_sequence=meta.series_sequence,
    )
    return TransactionFilter.series_from(meta.series_id, meta.series_sequence)


class SeriesMutator:
    """Applies updates, deletes and clones with the right scope."""

    def __init__(
        self,
        store: TransactionStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger

    def _load_target(self, transaction_id: UUID) -> Transaction:
        target = self._store.get(transaction_id)
        if target is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        return target

    def _complete_changes(
        self,
        target: Transaction,
        apply_mode: ApplyMode,
        changes: dict[str, Any],
    ) -> dict[str, Any]:
        """Keep series_amount_total_cents consistent where that is safe."""
        changes = dict(changes)
        amount_changed = "amount_cents" in changes
        total_given = "series_amount_total_cents" in changes

        if target.series_type == SeriesType.SINGLE:
            if amount_changed and not total_given:
                changes["series_amount_total_cents"] = changes["amount_cents"]
            return changes

        if apply_mode != ApplyMode.SERIES_FROM_HERE:
            return changes

        if target.series_type == SeriesType.MONTHLY:
            # Monthly amounts are uniform, so the total can be recomputed
            if amount_changed and not total_given:
                changes["series_amount_total_cents"] = (
                    changes["amount_cents"] * target.series_total
                )
        elif amount_changed or total_given:
            # TODO: decide with product whether scoped installment amount
            # edits should re-split the remaining total across siblings
            logger.warning(
                "installment_amounts_not_redistributed",
                series_id=str(target.series_id),
                from_sequence=target.series_sequence,
                fields=sorted(k for k in changes if k in ("amount_cents", "series_amount_total_cents")),
            )
        return changes

    def update(
        self,
        request: Union[UpdateRequest, dict[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """
        Apply field changes to the target, or the target and its later siblings.

        Returns:
            Updated records ordered by date

        Raises:
            ValidationError: Empty or invalid patch
            NotFoundError: Target doesn't exist
            InvalidScopeError: Scoped edit on a record with no series
            PersistenceError: Store failure (not retried)
        """
        request = parse_model(UpdateRequest, request)
        if request.changes.is_empty:
            raise ValidationError("Nothing to update")

        target = self._load_target(request.id)
        scope = resolve_scope(target, request.apply_mode, request.series_meta)
        changes = self._complete_changes(
            target, request.apply_mode, request.changes.store_changes()
        )

        updated = self._store.update_where(scope, changes)
        if not updated:
            raise NotFoundError(f"Transaction not found: {request.id}")

        logger.info(
            "transactions_updated",
            target_id=str(target.id),
            scope=request.apply_mode.value,
            count=len(updated),
            fields=sorted(changes),
        )
        if self._audit_logger:
            self._audit_logger.log_transactions_updated(
                entity_id=target.id,
                scope=request.apply_mode.value,
                changes=changes,
                affected=len(updated),
                series_id=target.series_id,
                correlation_id=correlation_id,
            )
        return updated

    def set_paid(
        self,
        transaction_id: UUID,
        is_paid: bool,
        apply_mode: ApplyMode = ApplyMode.SINGLE,
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """Settlement toggle, optionally for the rest of the series."""
        return self.update(UpdateRequest(
            id=transaction_id,
            apply_mode=apply_mode,
            changes=TransactionPatch(is_paid=is_paid),
        ), correlation_id)

    def delete(
        self,
        request: Union[DeleteRequest, dict[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """
        Delete the target, or the target and its later siblings.

        Returns:
            Number of records deleted

        Raises:
            NotFoundError: Target doesn't exist
            InvalidScopeError: Scoped delete on a record with no series
            PersistenceError: Store failure (not retried)
        """
        request = parse_model(DeleteRequest, request)
        target = self._load_target(request.id)
        scope = resolve_scope(target, request.mode, request.series_meta)

        deleted = self._store.delete_where(scope)
        if deleted == 0:
            raise NotFoundError(f"Transaction not found: {request.id}")

        logger.info(
            "transactions_deleted",
            target_id=str(target.id),
            scope=request.mode.value,
            count=deleted,
        )
        if self._audit_logger:
            self._audit_logger.log_transactions_deleted(
                entity_id=target.id,
                scope=request.mode.value,
                affected=deleted,
                series_id=target.series_id,
                correlation_id=correlation_id,
            )
        return deleted

    def clone(
        self,
        request: Union[CloneRequest, dict[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Copy a transaction as a new single record on another date.

        The copy never inherits series membership.
        """
        request = parse_model(CloneRequest, request)
        source = self._load_target(request.source_id)

        copy = Transaction(
            type=source.type,
            amount_cents=source.amount_cents,
            date=request.date,
            description=source.description,
            notes=source.notes,
            payment_method=source.payment_method,
            account_id=source.account_id,
            category_id=source.category_id,
            is_paid=request.is_paid,
            series_amount_total_cents=source.amount_cents,
        )
        inserted = self._store.insert_batch([copy])[0]

        logger.info("transaction_cloned", source_id=str(source.id), clone_id=str(inserted.id))
        if self._audit_logger:
            self._audit_logger.log_series_created(
                entity_id=inserted.id,
                series_type=SeriesType.SINGLE.value,
                series_id=None,
                count=1,
                correlation_id=correlation_id,
            )
        return inserted
