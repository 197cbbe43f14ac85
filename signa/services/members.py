import unicodedata

from signa.errors import NotFound, ValidationError
from signa.services.voting.ranking import alphabetical

MEMBER_FIELDS = ("full_name", "nickname", "email", "is_eligible")


def normalize_name(value):
    """Lowercase and strip accents so "José" matches a search for "jose"."""
    decomposed = unicodedata.normalize("NFD", value.lower())
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def search_members(members, query):
    """Prefix search on first names, falling back to surnames.

    "A" finds members whose first name starts with A. Only when no first
    name matches are the remaining name parts searched.
    """
    needle = normalize_name((query or "").strip())
    if not needle:
        return list(members)

    def parts(member):
        return member["full_name"].split()

    first_name_matches = [
        member
        for member in members
        if parts(member) and normalize_name(parts(member)[0]).startswith(needle)
    ]
    if first_name_matches:
        return first_name_matches

    return [
        member
        for member in members
        if any(normalize_name(part).startswith(needle) for part in parts(member)[1:])
    ]


class MemberService:
    def __init__(self, storage):
        self.storage = storage

    def get(self, member_id):
        member = self.storage.get("members", member_id)
        if member is None:
            raise NotFound("Member not found.", member_id=member_id)
        return member

    def list_members(self, tenant_id, include_ineligible=False, query=None):
        filters = {"tenant_id": tenant_id}
        if not include_ineligible:
            filters["is_eligible"] = True
        members = alphabetical(self.storage.find("members", **filters))
        return search_members(members, query) if query else members

    def create_member(self, tenant_id, full_name, nickname=None, email=None, is_eligible=True):
        full_name = " ".join((full_name or "").split())
        if not full_name:
            raise ValidationError("Full name is required.")
        return self.storage.insert(
            "members",
            {
                "tenant_id": tenant_id,
                "full_name": full_name,
                "nickname": (nickname or "").strip() or None,
                "email": (email or "").strip().lower() or None,
                "is_eligible": bool(is_eligible),
            },
        )

    def update_member(self, member_id, changes):
        self.get(member_id)
        unknown = sorted(set(changes) - set(MEMBER_FIELDS))
        if unknown:
            raise ValidationError("Unsupported member fields: " + ", ".join(unknown) + ".")
        patch = dict(changes)
        if "full_name" in patch:
            patch["full_name"] = " ".join((patch["full_name"] or "").split())
            if not patch["full_name"]:
                raise ValidationError("Full name is required.")
        if "is_eligible" in patch:
            patch["is_eligible"] = bool(patch["is_eligible"])
        if not patch:
            return self.get(member_id)
        (member,) = self.storage.update("members", {"id": member_id}, patch)
        return member

    def set_eligibility(self, member_id, is_eligible):
        # members are never deleted: votes keep referencing them
        return self.update_member(member_id, {"is_eligible": is_eligible})
