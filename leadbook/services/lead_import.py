import logging
from typing import Any, List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from leadbook.core.errors import TransactionFailed, ValidationFailed, field_error
from leadbook.crud import lead as crud_lead
from leadbook.schemas.lead import LeadCreate
from leadbook.schemas.lead_import import ImportResponse, ImportRowResult, ImportSummary
from leadbook.services.change_history import ChangeRecorder
from leadbook.services.lead_validation import lead_columns, validate_lead

logger = logging.getLogger(__name__)

MAX_IMPORT_ROWS = 200


class LeadImportPipeline:
    """
        Bulk import of untrusted rows for one importing user.

        Workflow:
        1. Reject the request outright when `rows` is not a non-empty list of
           at most 200 entries; nothing is validated or persisted.
        2. Validate every row on its own with the lenient (CSV) validator.
           A row failing validation, or raising anything unexpected, is
           recorded against its 1-based position and never affects siblings.
        3. Insert the valid rows, in upload order and owned by the importer,
           in a single transaction: each Lead is flushed before its
           "imported" ChangeRecord. Any failure rolls the whole batch back.
        4. Summarise `{total, success, errors, inserted}`; `inserted` stays 0
           after a rollback even though `success` counts the valid rows.

        Raises:
            ValidationFailed: empty or oversized upload.
            TransactionFailed: the insert rolled back; carries the full report.
    """

    @staticmethod
    def check_batch(rows: Any) -> List[Any]:
        if not isinstance(rows, list) or len(rows) == 0:
            raise ValidationFailed([field_error("rows", "No data provided")])
        if len(rows) > MAX_IMPORT_ROWS:
            raise ValidationFailed(
                [field_error("rows", f"Maximum {MAX_IMPORT_ROWS} rows allowed")]
            )
        return rows

    @staticmethod
    def validate_rows(rows: List[Any]):
        results: List[ImportRowResult] = []
        valid: List[LeadCreate] = []

        for index, row in enumerate(rows, start=1):
            try:
                lead = validate_lead(row, lenient=True)
            except ValidationFailed as e:
                results.append(ImportRowResult(row=index, data=row, success=False, errors=e.errors))
                continue
            except Exception as e:
                logger.warning("Unexpected error validating import row %d: %r", index, e)
                message = str(e) or e.__class__.__name__
                results.append(
                    ImportRowResult(row=index, data=row, success=False, errors=[field_error(None, message)])
                )
                continue

            valid.append(lead)
            results.append(ImportRowResult(row=index, data=row, success=True))

        return results, valid

    @staticmethod
    async def run(db: AsyncSession, rows: Any, owner_id: UUID) -> ImportResponse:
        rows = LeadImportPipeline.check_batch(rows)
        results, valid = LeadImportPipeline.validate_rows(rows)

        summary = ImportSummary(
            total=len(rows),
            success=len(valid),
            errors=len(rows) - len(valid),
            inserted=0,
        )
        report = ImportResponse(results=results, summary=summary)

        if not valid:
            logger.info("Import by %s: %d rows, none valid", owner_id, len(rows))
            return report

        inserted = 0
        try:
            for lead_in in valid:
                lead = await crud_lead.create_lead(db, lead_columns(lead_in), owner_id)
                await ChangeRecorder.record_imported(db, lead, owner_id)
                inserted += 1
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(
                "Import by %s rolled back after %d of %d rows: %s",
                owner_id, inserted, len(valid), e, exc_info=True,
            )
            raise TransactionFailed(
                "Failed to insert data. Transaction rolled back.",
                report=report.model_dump(mode="json", by_alias=True),
            )

        report.summary.inserted = inserted
        logger.info(
            "Import by %s: total=%d success=%d errors=%d inserted=%d",
            owner_id, summary.total, summary.success, summary.errors, inserted,
        )
        return report
