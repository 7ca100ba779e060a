"""Project registry routes."""
from flask import jsonify, request

from . import projects_bp
from .services import ProjectService
from manuvest.core.utils.api_helpers import (
    api_login_required, budget_editor_required, get_json_or_error, get_store,
    handle_domain_errors,
)


@projects_bp.route('/api/projects', methods=['GET'])
@api_login_required
def api_get_projects():
    """List projects; ?q= filters by name, code or customer."""
    service = ProjectService(get_store())
    term = request.args.get('q')
    projects = service.search_projects(term) if term else service.list()
    return jsonify([p.to_dict() for p in projects])


@projects_bp.route('/api/projects/<project_id>', methods=['GET'])
@api_login_required
@handle_domain_errors
def api_get_project(project_id):
    return jsonify(ProjectService(get_store()).get(project_id).to_dict())


@projects_bp.route('/api/projects', methods=['POST'])
@budget_editor_required
@handle_domain_errors
def api_create_project():
    data, error = get_json_or_error()
    if error:
        return error
    project = ProjectService(get_store()).manage_project('create', data)
    return jsonify({'success': True, 'project': project.to_dict()}), 201


@projects_bp.route('/api/projects/<project_id>', methods=['PUT'])
@budget_editor_required
@handle_domain_errors
def api_update_project(project_id):
    data, error = get_json_or_error()
    if error:
        return error
    data['id'] = project_id
    project = ProjectService(get_store()).manage_project('update', data)
    return jsonify({'success': True, 'project': project.to_dict()})


@projects_bp.route('/api/projects/<project_id>', methods=['DELETE'])
@budget_editor_required
@handle_domain_errors
def api_delete_project(project_id):
    ProjectService(get_store()).manage_project('delete', {'id': project_id})
    return jsonify({'success': True})


# ============== MILESTONES ==============

@projects_bp.route('/api/projects/<project_id>/milestones', methods=['POST'])
@budget_editor_required
@handle_domain_errors
def api_add_milestone(project_id):
    data, error = get_json_or_error()
    if error:
        return error
    milestone = ProjectService(get_store()).add_milestone(
        project_id, data.get('name'), data.get('date'))
    return jsonify({'success': True, 'milestone': milestone.to_dict()}), 201


@projects_bp.route('/api/projects/<project_id>/milestones/<milestone_id>', methods=['DELETE'])
@budget_editor_required
@handle_domain_errors
def api_remove_milestone(project_id, milestone_id):
    project = ProjectService(get_store()).remove_milestone(project_id, milestone_id)
    return jsonify({'success': True, 'project': project.to_dict()})


@projects_bp.route('/api/projects/<project_id>/milestones/<milestone_id>/toggle', methods=['POST'])
@budget_editor_required
@handle_domain_errors
def api_toggle_milestone(project_id, milestone_id):
    project = ProjectService(get_store()).toggle_milestone(project_id, milestone_id)
    return jsonify({'success': True, 'project': project.to_dict()})
