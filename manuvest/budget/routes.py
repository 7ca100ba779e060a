"""Budget plan routes."""
from flask import jsonify, request
from flask_login import current_user

from . import budget_bp
from .services import BudgetService, TransferService
from manuvest.core.utils.api_helpers import (
    api_login_required, budget_editor_required, error_response, get_json_or_error,
    get_store, handle_domain_errors,
)


# ============== PLANS ==============

@budget_bp.route('/api/plans', methods=['GET'])
@api_login_required
@handle_domain_errors
def api_get_plans():
    """List plans, optionally filtered by ?status= and ?project_id=."""
    plans = BudgetService(get_store()).list(
        status=request.args.get('status'), project_id=request.args.get('project_id'))
    return jsonify([p.to_dict() for p in plans])


@budget_bp.route('/api/plans/<plan_id>', methods=['GET'])
@api_login_required
@handle_domain_errors
def api_get_plan(plan_id):
    plan = BudgetService(get_store()).get(plan_id)
    return jsonify({**plan.to_dict(), 'total_cost': plan.total_cost})


@budget_bp.route('/api/plans', methods=['POST'])
@budget_editor_required
@handle_domain_errors
def api_create_plan():
    data, error = get_json_or_error()
    if error:
        return error
    plan = BudgetService(get_store()).create(data, current_user)
    return jsonify({'success': True, 'plan': plan.to_dict()}), 201


@budget_bp.route('/api/plans/<plan_id>', methods=['PUT'])
@budget_editor_required
@handle_domain_errors
def api_update_plan(plan_id):
    data, error = get_json_or_error()
    if error:
        return error
    data['id'] = plan_id
    plan = BudgetService(get_store()).update(data, current_user)
    return jsonify({'success': True, 'plan': plan.to_dict()})


@budget_bp.route('/api/plans/<plan_id>', methods=['DELETE'])
@budget_editor_required
@handle_domain_errors
def api_delete_plan(plan_id):
    BudgetService(get_store()).delete(plan_id, current_user)
    return jsonify({'success': True})


@budget_bp.route('/api/plans/<plan_id>/status', methods=['PUT'])
@budget_editor_required
@handle_domain_errors
def api_update_plan_status(plan_id):
    data, error = get_json_or_error()
    if error:
        return error
    if not data.get('status'):
        return error_response('status is required')
    plan = BudgetService(get_store()).update_status(plan_id, data['status'], current_user)
    return jsonify({'success': True, 'status': plan.status.value})


# ============== TRANSFERS ==============

@budget_bp.route('/api/plans/<plan_id>/items/<item_id>/transfer', methods=['POST'])
@budget_editor_required
@handle_domain_errors
def api_transfer_item(plan_id, item_id):
    """Move one item to another plan. Body: {target_plan_id, reason}."""
    data, error = get_json_or_error()
    if error:
        return error
    item = TransferService(get_store()).transfer(
        plan_id, item_id, data.get('target_plan_id'), data.get('reason'), current_user)
    return jsonify({'success': True, 'item': item.to_dict()})
