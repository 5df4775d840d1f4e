"""Document preparation (step 2) — command and handler.

Optionally renders the invoice, packing slip and shipping label, then moves
the order to PROCESSING. Rendering happens only while the step is pending,
so a retried request does not render twice.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.processing.order_sync import push_order_status, render_documents
from dispatch.processing.processing import DocumentKind, OrderProcessing, ProcessingStep


@dispatch.command(part_of="OrderProcessing")
class PrepareDocuments:
    processing_id = Identifier(required=True)
    kinds = Text()  # JSON list of document kinds


@dispatch.command_handler(part_of=OrderProcessing)
class DocumentsHandler:
    @handle(PrepareDocuments)
    def prepare_documents(self, command):
        kinds = json.loads(command.kinds) if isinstance(command.kinds, str) else list(command.kinds or [])
        unknown = [k for k in kinds if k not in {d.value for d in DocumentKind}]
        if unknown:
            raise ValidationError({"kinds": [f"Unknown document kind: {k}" for k in unknown]})

        repo = current_domain.repository_for(OrderProcessing)
        proc = repo.get(command.processing_id)
        if not proc.awaits(ProcessingStep.DOCUMENTS):
            return proc.current_step

        proc.prepare_documents(render_documents(proc, kinds))
        push_order_status(proc, ProcessingStep.DOCUMENTS)
        repo.add(proc)
        return proc.current_step
