from quoteflow.constants.audit_templates import AUDIT_TEMPLATES
from quoteflow.constants.audit_actions import AuditAction


def render_audit_message(action: AuditAction, **context) -> str:
    template = AUDIT_TEMPLATES.get(AuditAction(action))
    if not template:
        raise ValueError(f"No audit template for action {action}")

    try:
        return template.format(**context)
    except KeyError as e:
        raise ValueError(
            f"Missing audit context key: {e.args[0]} for {action}"
        )


def actor_label(actor_user_id: int | None) -> str:
    return "System" if actor_user_id is None else f"User #{actor_user_id}"


def entity_label(entity_type: str, entity_id: int, metadata: dict) -> str:
    key = "quote_number" if entity_type == "quote" else "job_number"
    return metadata.get(key) or f"#{entity_id}"
