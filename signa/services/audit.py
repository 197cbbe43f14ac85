def record_audit(storage, entity_type, entity_id, action, tenant_id=None, actor_id=None, details=None):
    return storage.insert(
        "audit_logs",
        {
            "tenant_id": tenant_id,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "action": action,
            "actor_id": actor_id,
            "details": details,
        },
    )


def audit_trail(storage, entity_id):
    rows = storage.find("audit_logs", entity_id=entity_id)
    return sorted(rows, key=lambda row: row["created_at"])
