from flask import current_app, jsonify, request

from signa.errors import ValidationError
from signa.services.commissions import CommissionService
from signa.services.members import MemberService
from signa.services.surveys import SurveyService
from signa.services.voting import BallotService
from signa.storage import get_storage


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Send a JSON object.")
    return data


def _public_commission(commission):
    return {
        "id": commission["id"],
        "name": commission["name"],
        "description": commission["description"],
        "year": commission["year"],
        "anonymity_mode": commission["anonymity_mode"],
    }


def register_public_routes(app):
    @app.route("/vote/commission/<code>", methods=["GET"])
    def commission_ballot(code):
        service = CommissionService(get_storage())
        commission = service.resolve_link_code(code)
        roles = service.roles.list_roles(commission["id"])
        ranked = service.ranked_candidates(commission, roles)

        return jsonify(
            {
                "ok": True,
                "commission": _public_commission(commission),
                "roles": [
                    {
                        "id": role["id"],
                        "name": role["name"],
                        "max_selections": role["max_selections"],
                        "display_order": role["display_order"],
                        "candidates": [
                            {
                                "id": member["id"],
                                "full_name": member["full_name"],
                                "nickname": member["nickname"],
                                "suggestion_count": member["suggestion_count"],
                            }
                            for member in ranked[role["id"]]
                        ],
                    }
                    for role in roles
                ],
            }
        )

    @app.route("/vote/commission/<code>", methods=["POST"])
    def submit_commission_ballot(code):
        storage = get_storage()
        commission = CommissionService(storage).resolve_link_code(code)
        data = _json_body()

        receipt = BallotService(storage).submit(
            commission["id"],
            data.get("selections"),
            voter_id=data.get("voter_id"),
        )
        return jsonify({"ok": True, "saved": True, **receipt}), 201

    @app.route("/vote/survey/<code>", methods=["GET"])
    def survey_form(code):
        storage = get_storage()
        service = SurveyService(storage)
        survey = service.resolve_link_code(code)
        members = MemberService(storage).list_members(survey["tenant_id"])

        return jsonify(
            {
                "ok": True,
                "survey": {
                    "id": survey["id"],
                    "title": survey["title"],
                    "description": survey["description"],
                    "year": survey["year"],
                },
                "items": [
                    {
                        "id": item["id"],
                        "role_name": item["role_name"],
                        "max_suggestions": item["max_suggestions"],
                    }
                    for item in service.list_items(survey["id"])
                ],
                "members": [
                    {"id": member["id"], "full_name": member["full_name"]}
                    for member in members
                ],
            }
        )

    @app.route("/vote/survey/<code>", methods=["POST"])
    def submit_survey(code):
        service = SurveyService(get_storage())
        survey = service.resolve_link_code(code)
        data = _json_body()

        receipt = service.submit_suggestions(survey["id"], data.get("suggestions"))
        current_app.logger.info("Survey %s received a response", survey["id"])
        return jsonify({"ok": True, "saved": True, **receipt}), 201
