from flask import Blueprint, jsonify, request, current_app
from livequiz import db
from livequiz.models import Module, Question
from livequiz.api import instructor_required
import json

modules = Blueprint('modules', __name__)


def _topics(data):
    topics = data.get('topics') or []
    if not isinstance(topics, list) or not all(isinstance(topic, str) for topic in topics):
        return None
    return topics


@modules.route('/modules', methods=['GET'])
def list_modules():
    rows = Module.query.order_by(Module.id).all()
    return jsonify({'modules': [module.to_dict() for module in rows]})


@modules.route('/modules', methods=['POST'])
@instructor_required
def create_module():
    data = request.get_json(silent=True) or {}
    module_id = str(data.get('id') or '').strip()
    name = (data.get('name') or '').strip()
    if not module_id or not name:
        return jsonify({'error': 'id and name are required'}), 400
    topics = _topics(data)
    if topics is None:
        return jsonify({'error': 'topics must be a list of strings'}), 400
    if db.session.get(Module, module_id) is not None:
        return jsonify({'error': f'Module {module_id} already exists'}), 409

    module = Module(
        id=module_id,
        name=name,
        category=data.get('category'),
        topics=json.dumps(topics),
        is_custom=True,
    )
    db.session.add(module)
    db.session.commit()
    current_app.logger.info(f'[module] created id={module_id}')
    return jsonify({'success': True, 'id': module_id}), 201


@modules.route('/modules/<string:module_id>', methods=['PUT'])
@instructor_required
def update_module(module_id):
    module = db.session.get(Module, module_id)
    if module is None:
        return jsonify({'error': 'Module not found'}), 404
    data = request.get_json(silent=True) or {}
    if 'name' in data:
        name = (data.get('name') or '').strip()
        if not name:
            return jsonify({'error': 'name cannot be blank'}), 400
        module.name = name
    if 'topics' in data:
        topics = _topics(data)
        if topics is None:
            return jsonify({'error': 'topics must be a list of strings'}), 400
        module.topics = json.dumps(topics)
    if 'category' in data:
        module.category = data.get('category')
    db.session.commit()
    return jsonify({'success': True, 'module': module.to_dict()})


@modules.route('/modules/<string:module_id>', methods=['DELETE'])
@instructor_required
def delete_module(module_id):
    module = db.session.get(Module, module_id)
    if module is None:
        return jsonify({'error': 'Module not found'}), 404
    in_use = Question.query.filter_by(module_id=module_id).count()
    if in_use:
        return jsonify({'error': f'Module {module_id} still has {in_use} questions'}), 409
    db.session.delete(module)
    db.session.commit()
    current_app.logger.info(f'[module] deleted id={module_id}')
    return jsonify({'success': True})
