def tenant_summary(storage, tenant_id):
    members = storage.find("members", tenant_id=tenant_id)
    surveys = storage.find("surveys", tenant_id=tenant_id)
    commissions = storage.find("commissions", tenant_id=tenant_id)

    return {
        "total_members": len(members),
        "eligible_members": sum(1 for member in members if member["is_eligible"]),
        "total_surveys": len(surveys),
        "open_surveys": sum(1 for survey in surveys if survey["status"] == "open"),
        "total_commissions": len(commissions),
        "open_commissions": sum(1 for row in commissions if row["status"] == "open"),
        "finalized_commissions": sum(1 for row in commissions if row["status"] == "finalized"),
    }
