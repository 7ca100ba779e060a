"""Master data and user administration routes.

Reads are open to every signed-in user (form dropdowns); changes require Admin.
"""
from flask import jsonify
from flask_login import current_user, logout_user

from . import masterdata_bp
from .repositories import MasterDataRepository
from .services import AdminService
from ..utils.api_helpers import (
    admin_required, api_login_required, get_json_or_error, get_store,
    handle_domain_errors,
)


def _options(rows):
    return [o.to_dict() for o in rows]


# ============== MASTER DATA (read) ==============

@masterdata_bp.route('/api/master-data', methods=['GET'])
@api_login_required
def api_get_all_master_data():
    """All master-data lists keyed by category."""
    lists = MasterDataRepository(get_store()).list_all()
    return jsonify({category: _options(rows) for category, rows in lists.items()})


@masterdata_bp.route('/api/master-data/<category>', methods=['GET'])
@api_login_required
@handle_domain_errors
def api_get_master_data(category):
    return jsonify(_options(MasterDataRepository(get_store()).list(category)))


@masterdata_bp.route('/api/master-data/items/active', methods=['GET'])
@api_login_required
def api_get_active_items():
    """Active master items for the purchase request item picker."""
    return jsonify(_options(MasterDataRepository(get_store()).active_items()))


# ============== MASTER DATA (admin) ==============

@masterdata_bp.route('/admin/api/master-data/<category>', methods=['POST'])
@admin_required
@handle_domain_errors
def api_create_master_data(category):
    data, error = get_json_or_error()
    if error:
        return error
    option = AdminService(get_store()).manage_master_data(category, 'create', data)
    return jsonify({'success': True, 'item': option.to_dict()}), 201


@masterdata_bp.route('/admin/api/master-data/<category>/<option_id>', methods=['PUT'])
@admin_required
@handle_domain_errors
def api_update_master_data(category, option_id):
    data, error = get_json_or_error()
    if error:
        return error
    data['id'] = option_id
    option = AdminService(get_store()).manage_master_data(category, 'update', data)
    return jsonify({'success': True, 'item': option.to_dict()})


@masterdata_bp.route('/admin/api/master-data/<category>/<option_id>', methods=['DELETE'])
@admin_required
@handle_domain_errors
def api_delete_master_data(category, option_id):
    AdminService(get_store()).manage_master_data(category, 'delete', {'id': option_id})
    return jsonify({'success': True})


# ============== USER MANAGEMENT ==============

@masterdata_bp.route('/admin/api/users', methods=['GET'])
@admin_required
def api_get_users():
    return jsonify(AdminService(get_store()).list_users())


@masterdata_bp.route('/admin/api/users', methods=['POST'])
@admin_required
@handle_domain_errors
def api_create_user():
    data, error = get_json_or_error()
    if error:
        return error
    change = AdminService(get_store()).manage_user('create', data, actor=current_user)
    return jsonify({'success': True, 'user': change.user.to_public_dict()}), 201


@masterdata_bp.route('/admin/api/users/<user_id>', methods=['PUT'])
@admin_required
@handle_domain_errors
def api_update_user(user_id):
    data, error = get_json_or_error()
    if error:
        return error
    data['id'] = user_id
    change = AdminService(get_store()).manage_user('update', data, actor=current_user)
    return jsonify({'success': True, 'user': change.user.to_public_dict(), 'is_self': change.is_self})


@masterdata_bp.route('/admin/api/users/<user_id>', methods=['DELETE'])
@admin_required
@handle_domain_errors
def api_delete_user(user_id):
    """Delete a user. Deleting your own account ends the session."""
    change = AdminService(get_store()).manage_user('delete', {'id': user_id}, actor=current_user)
    if change.logout_required:
        logout_user()
    return jsonify({'success': True, 'logout_required': change.logout_required})
