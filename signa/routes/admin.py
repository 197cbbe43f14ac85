from flask import current_app, jsonify, request, session
from flask_login import current_user, login_required

from signa.errors import NotFound, ValidationError
from signa.services.audit import audit_trail
from signa.services.commissions import CommissionService
from signa.services.finalization import FinalizationService
from signa.services.members import MemberService
from signa.services.reports import tenant_summary
from signa.services.surveys import SurveyService
from signa.services.voting import TallyEngine
from signa.storage import get_storage

FINALIZATION_KEYS = "finalization_keys"


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Send a JSON object.")
    return data


def _owned(row, label):
    # rows from another tenant are reported as missing
    if row["tenant_id"] != current_user.tenant_id:
        raise NotFound(f"{label} not found.")
    return row


def _commissions():
    return CommissionService(
        get_storage(),
        default_anonymity_mode=current_app.config["DEFAULT_ANONYMITY_MODE"],
    )


def _commission(commission_id):
    return _owned(_commissions().get(commission_id), "Committee")


def _survey(survey_id):
    return _owned(SurveyService(get_storage()).get(survey_id), "Survey")


def _role(commission_id, role_id):
    role = _commissions().roles.get_role(role_id)
    if role["commission_id"] != commission_id:
        raise NotFound("Role not found.", role_id=role_id)
    return role


def register_admin_routes(app):
    # committees

    @app.route("/admin/commissions")
    @login_required
    def admin_commissions():
        rows = _commissions().list_commissions(current_user.tenant_id)
        return jsonify({"ok": True, "commissions": rows})

    @app.route("/admin/commissions", methods=["POST"])
    @login_required
    def create_commission():
        data = _json_body()
        commission = _commissions().create_commission(
            current_user.tenant_id,
            data.get("name"),
            data.get("year"),
            description=data.get("description"),
            anonymity_mode=data.get("anonymity_mode"),
            survey_id=data.get("survey_id"),
            created_by=current_user.id,
        )
        return jsonify({"ok": True, "commission": commission}), 201

    @app.route("/admin/commissions/<commission_id>")
    @login_required
    def commission_detail(commission_id):
        service = _commissions()
        commission = _commission(commission_id)
        return jsonify(
            {
                "ok": True,
                "commission": commission,
                "roles": service.roles.list_roles(commission_id),
                "audit": audit_trail(get_storage(), commission_id),
            }
        )

    @app.route("/admin/commissions/<commission_id>/open", methods=["POST"])
    @login_required
    def open_commission(commission_id):
        _commission(commission_id)
        commission = _commissions().open_commission(commission_id, actor_id=current_user.id)
        return jsonify({"ok": True, "commission": commission})

    @app.route("/admin/commissions/<commission_id>/settings", methods=["POST"])
    @login_required
    def update_commission_settings(commission_id):
        _commission(commission_id)
        commission = _commissions().update_settings(
            commission_id, _json_body(), actor_id=current_user.id
        )
        return jsonify({"ok": True, "commission": commission})

    # roles

    @app.route("/admin/commissions/<commission_id>/roles")
    @login_required
    def commission_roles(commission_id):
        _commission(commission_id)
        include_inactive = request.args.get("all") == "1"
        roles = _commissions().roles.list_roles(commission_id, include_inactive=include_inactive)
        return jsonify({"ok": True, "roles": roles})

    @app.route("/admin/commissions/<commission_id>/roles", methods=["POST"])
    @login_required
    def add_role(commission_id):
        _commission(commission_id)
        data = _json_body()
        role = _commissions().roles.add_role(
            commission_id, data.get("name"), data.get("max_selections", 1)
        )
        return jsonify({"ok": True, "role": role}), 201

    @app.route("/admin/commissions/<commission_id>/roles/<role_id>", methods=["POST"])
    @login_required
    def update_role(commission_id, role_id):
        _commission(commission_id)
        _role(commission_id, role_id)
        data = _json_body()
        role = _commissions().roles.update_role(
            role_id,
            name=data.get("name"),
            max_selections=data.get("max_selections"),
        )
        return jsonify({"ok": True, "role": role})

    @app.route("/admin/commissions/<commission_id>/roles/<role_id>/delete", methods=["POST"])
    @login_required
    def delete_role(commission_id, role_id):
        _commission(commission_id)
        _role(commission_id, role_id)
        _commissions().roles.remove_role(role_id)
        return jsonify({"ok": True})

    @app.route("/admin/commissions/<commission_id>/roles/<role_id>/move", methods=["POST"])
    @login_required
    def move_role(commission_id, role_id):
        _commission(commission_id)
        _role(commission_id, role_id)
        registry = _commissions().roles
        registry.move_role(role_id, _json_body().get("direction"))
        return jsonify({"ok": True, "roles": registry.list_roles(commission_id)})

    @app.route("/admin/commissions/<commission_id>/roles/defaults", methods=["POST"])
    @login_required
    def import_default_roles(commission_id):
        _commission(commission_id)
        roles = _commissions().roles.import_default_roles(commission_id)
        return jsonify({"ok": True, "roles": roles}), 201

    # results, voting session and finalization

    @app.route("/admin/commissions/<commission_id>/results")
    @login_required
    def commission_results(commission_id):
        commission = _commission(commission_id)
        results = TallyEngine(get_storage()).tally(commission_id)
        return jsonify({"ok": True, "status": commission["status"], "results": results})

    @app.route("/admin/commissions/<commission_id>/session/<int:index>")
    @login_required
    def voting_session(commission_id, index):
        _commission(commission_id)
        step = _commissions().voting_session_step(commission_id, index)
        return jsonify({"ok": True, **step})

    @app.route("/admin/commissions/<commission_id>/finalize/key", methods=["POST"])
    @login_required
    def issue_finalization_key(commission_id):
        _commission(commission_id)
        key = FinalizationService(get_storage()).issue_key(commission_id)
        keys = dict(session.get(FINALIZATION_KEYS, {}))
        keys[commission_id] = key
        session[FINALIZATION_KEYS] = keys
        return jsonify({"ok": True, "key": key})

    @app.route("/admin/commissions/<commission_id>/finalize", methods=["POST"])
    @login_required
    def finalize_commission(commission_id):
        _commission(commission_id)
        data = _json_body()
        issued_key = session.get(FINALIZATION_KEYS, {}).get(commission_id)

        commission = FinalizationService(get_storage()).finalize(
            commission_id,
            issued_key,
            str(data.get("key") or ""),
            data.get("acknowledged"),
            actor_id=current_user.id,
        )
        keys = dict(session.get(FINALIZATION_KEYS, {}))
        keys.pop(commission_id, None)
        session[FINALIZATION_KEYS] = keys
        return jsonify({"ok": True, "commission": commission})

    # surveys

    @app.route("/admin/surveys")
    @login_required
    def admin_surveys():
        surveys = SurveyService(get_storage()).list_surveys(current_user.tenant_id)
        return jsonify({"ok": True, "surveys": surveys})

    @app.route("/admin/surveys", methods=["POST"])
    @login_required
    def create_survey():
        data = _json_body()
        survey = SurveyService(get_storage()).create_survey(
            current_user.tenant_id,
            data.get("title"),
            data.get("year"),
            description=data.get("description"),
        )
        return jsonify({"ok": True, "survey": survey}), 201

    @app.route("/admin/surveys/<survey_id>/items", methods=["POST"])
    @login_required
    def add_survey_item(survey_id):
        _survey(survey_id)
        data = _json_body()
        item = SurveyService(get_storage()).add_item(
            survey_id, data.get("role_name"), data.get("max_suggestions", 1)
        )
        return jsonify({"ok": True, "item": item}), 201

    @app.route("/admin/surveys/<survey_id>/status", methods=["POST"])
    @login_required
    def set_survey_status(survey_id):
        _survey(survey_id)
        survey = SurveyService(get_storage()).set_status(survey_id, _json_body().get("status"))
        return jsonify({"ok": True, "survey": survey})

    @app.route("/admin/surveys/<survey_id>/results")
    @login_required
    def survey_results(survey_id):
        _survey(survey_id)
        results = SurveyService(get_storage()).results(survey_id)
        return jsonify({"ok": True, "results": results})

    # members

    @app.route("/admin/members")
    @login_required
    def admin_members():
        members = MemberService(get_storage()).list_members(
            current_user.tenant_id,
            include_ineligible=request.args.get("all") == "1",
            query=request.args.get("q"),
        )
        return jsonify({"ok": True, "members": members})

    @app.route("/admin/members", methods=["POST"])
    @login_required
    def create_member():
        data = _json_body()
        member = MemberService(get_storage()).create_member(
            current_user.tenant_id,
            data.get("full_name"),
            nickname=data.get("nickname"),
            email=data.get("email"),
            is_eligible=data.get("is_eligible", True),
        )
        return jsonify({"ok": True, "member": member}), 201

    @app.route("/admin/members/<member_id>", methods=["POST"])
    @login_required
    def update_member(member_id):
        service = MemberService(get_storage())
        _owned(service.get(member_id), "Member")
        member = service.update_member(member_id, _json_body())
        return jsonify({"ok": True, "member": member})

    @app.route("/admin/members/<member_id>/eligibility", methods=["POST"])
    @login_required
    def set_member_eligibility(member_id):
        service = MemberService(get_storage())
        _owned(service.get(member_id), "Member")
        member = service.set_eligibility(member_id, _json_body().get("is_eligible"))
        return jsonify({"ok": True, "member": member})

    # reports

    @app.route("/admin/reports")
    @login_required
    def admin_reports():
        return jsonify({"ok": True, "summary": tenant_summary(get_storage(), current_user.tenant_id)})
