"""Report routes: comparison, evaluation and dashboard."""
from flask import jsonify, request
from flask_login import current_user

from . import reports_bp
from .services import ReportService
from manuvest.budget.services import BudgetService
from manuvest.core.utils.api_helpers import (
    api_login_required, budget_editor_required, error_response, get_config,
    get_json_or_error, get_store, handle_domain_errors,
)


def _report_service():
    config = get_config()
    return ReportService(get_store(), attribute_by=config.CATEGORY_ATTRIBUTION,
                         top_n=config.DASHBOARD_TOP_PROJECTS)


@reports_bp.route('/comparison/api/realization', methods=['GET'])
@api_login_required
def api_realization():
    """Budget versus realization per budget item, with grand totals."""
    return jsonify(_report_service().comparison())


@reports_bp.route('/evaluation/api/plans', methods=['GET'])
@api_login_required
def api_evaluation():
    return jsonify(_report_service().evaluation_report())


@reports_bp.route('/evaluation/api/plans/<plan_id>', methods=['PUT'])
@budget_editor_required
@handle_domain_errors
def api_save_evaluation(plan_id):
    """Body: {evaluations: {item_id: {obstacle, reason}}}."""
    data, error = get_json_or_error()
    if error:
        return error
    evaluations = data.get('evaluations')
    if not isinstance(evaluations, dict):
        return error_response('evaluations must be an object keyed by item id')
    plan = BudgetService(get_store()).save_evaluation(plan_id, evaluations, current_user)
    return jsonify({'success': True, 'plan': plan.to_dict()})


@reports_bp.route('/api/dashboard', methods=['GET'])
@api_login_required
def api_dashboard():
    """Dashboard figures for ?year= (defaults to the current year)."""
    year = request.args.get('year', type=int)
    return jsonify(_report_service().dashboard(year))
