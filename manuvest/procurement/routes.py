"""Purchase request routes."""
from flask import jsonify, request
from flask_login import current_user

from . import pr_bp
from .services import PurchaseRequestService, WorkflowEngine
from manuvest.core.utils.api_helpers import (
    api_login_required, error_response, get_json_or_error, get_store,
    handle_domain_errors,
)


def _detail(pr, engine):
    return {
        **pr.to_dict(),
        'total_cost': pr.total_cost,
        'is_editable': engine.is_editable(pr),
        'can_delete': engine.can_delete(pr),
        'allowed_actions': engine.allowed_actions(pr, current_user),
    }


# ============== REQUESTS ==============

@pr_bp.route('/api/requests', methods=['GET'])
@api_login_required
@handle_domain_errors
def api_get_requests():
    """List purchase requests, newest first; optional ?status=."""
    prs = PurchaseRequestService(get_store()).list(status=request.args.get('status'))
    return jsonify([{**pr.to_dict(), 'total_cost': pr.total_cost} for pr in prs])


@pr_bp.route('/api/requests/<pr_id>', methods=['GET'])
@api_login_required
@handle_domain_errors
def api_get_request(pr_id):
    store = get_store()
    pr = PurchaseRequestService(store).get(pr_id)
    return jsonify(_detail(pr, WorkflowEngine(store)))


@pr_bp.route('/api/requests', methods=['POST'])
@api_login_required
@handle_domain_errors
def api_create_request():
    data, error = get_json_or_error()
    if error:
        return error
    store = get_store()
    pr = PurchaseRequestService(store).create(data, current_user)
    return jsonify({'success': True, 'request': _detail(pr, WorkflowEngine(store))}), 201


@pr_bp.route('/api/requests/<pr_id>', methods=['PUT'])
@api_login_required
@handle_domain_errors
def api_update_request(pr_id):
    data, error = get_json_or_error()
    if error:
        return error
    data['id'] = pr_id
    store = get_store()
    pr = PurchaseRequestService(store).update(data, current_user)
    return jsonify({'success': True, 'request': _detail(pr, WorkflowEngine(store))})


@pr_bp.route('/api/requests/<pr_id>', methods=['DELETE'])
@api_login_required
@handle_domain_errors
def api_delete_request(pr_id):
    PurchaseRequestService(get_store()).delete(pr_id, current_user)
    return jsonify({'success': True})


@pr_bp.route('/api/requests/<pr_id>/status', methods=['POST'])
@api_login_required
@handle_domain_errors
def api_change_request_status(pr_id):
    """Run a workflow transition. Body: {status, note}."""
    data, error = get_json_or_error()
    if error:
        return error
    if not data.get('status'):
        return error_response('status is required')
    engine = WorkflowEngine(get_store())
    pr = engine.transition(pr_id, data['status'], current_user, note=data.get('note'))
    return jsonify({'success': True, 'request': _detail(pr, engine)})


# ============== FORM HELPERS ==============

@pr_bp.route('/api/available-budgets', methods=['GET'])
@api_login_required
def api_available_budgets():
    """Approved plans for the budget-link picker; optional ?io_no= and ?cost_center=."""
    plans = PurchaseRequestService(get_store()).available_budgets(
        io_no=request.args.get('io_no'), cost_center=request.args.get('cost_center'))
    return jsonify([p.to_dict() for p in plans])


@pr_bp.route('/api/items/preview', methods=['POST'])
@api_login_required
@handle_domain_errors
def api_preview_item():
    """Validate a line item and return it with auto-filled fields and total.

    Body: the item, plus the request's io_no and cost_center when a budget
    item is linked.
    """
    data, error = get_json_or_error()
    if error:
        return error
    item = PurchaseRequestService(get_store()).build_item(
        data, io_no=data.get('io_no'), cost_center=data.get('cost_center'))
    return jsonify({'success': True, 'item': item.to_dict()})
