from collections import Counter

from signa.services.voting.tally import member_sort_key


def suggestion_weight(vote):
    weight = vote.get("vote_count")
    return 1 if weight is None else weight


def count_suggestions(survey_votes):
    """Sum suggestions per member id.

    Both row layouts are counted: the single ``member_id`` row (weighted by
    ``vote_count``) and the older ``suggestions`` array of member ids.
    """
    counts = Counter()
    for vote in survey_votes:
        if vote.get("member_id"):
            counts[vote["member_id"]] += suggestion_weight(vote)
        for member_id in vote.get("suggestions") or ():
            if member_id:
                counts[member_id] += 1
    return counts


def alphabetical(members):
    return sorted(members, key=lambda member: member_sort_key(member["full_name"], member["id"]))


def rank_members(role_name, survey_items, survey_votes, members):
    """Order candidates for a committee role by how often the survey suggested them.

    The survey item is matched on the exact role name. Without a match every
    member gets a zero count and the list is alphabetical. The result only
    affects display order.
    """
    item = next((item for item in survey_items if item["role_name"] == role_name), None)
    if item is None:
        return [dict(member, suggestion_count=0) for member in alphabetical(members)]

    matching = [vote for vote in survey_votes if vote.get("role_name") == item["role_name"]]
    counts = count_suggestions(matching)

    ranked = [dict(member, suggestion_count=counts.get(member["id"], 0)) for member in members]
    ranked.sort(
        key=lambda member: (
            -member["suggestion_count"],
            *member_sort_key(member["full_name"], member["id"]),
        )
    )
    return ranked
