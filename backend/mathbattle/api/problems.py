from flask import Blueprint, current_app, jsonify, request

from mathbattle.services.problems import PROBLEMS, get_problem, public_groups

problems = Blueprint('problems', __name__)


@problems.route('/problems', methods=['GET'])
def list_problems():
    return jsonify({
        'problems': [p.public_dict(include_solution=True) for p in PROBLEMS],
        'groups': public_groups(),
    })


@problems.route('/problems/<string:problem_id>', methods=['GET'])
def get_problem_detail(problem_id):
    problem = get_problem(problem_id)
    if not problem:
        return jsonify({'ok': False, 'message': 'Problem not found.'}), 404
    return jsonify(problem.public_dict(include_solution=True))


@problems.route('/check', methods=['POST'])
def check_answer():
    payload = request.get_json(silent=True)
    if payload is None and request.get_data():
        return jsonify({'ok': False, 'message': 'Invalid JSON payload.'}), 400
    payload = payload if isinstance(payload, dict) else {}

    problem_id = payload.get('problemId')
    if not isinstance(problem_id, str) or not problem_id:
        return jsonify({'ok': False, 'message': 'Missing problemId.'}), 400

    problem = get_problem(problem_id)
    if not problem:
        return jsonify({'ok': False, 'message': 'Problem not found.'}), 404

    answers = payload.get('answers')
    try:
        result = problem.evaluate(answers if isinstance(answers, dict) else {})
    except Exception:
        current_app.logger.exception(f"Failed to evaluate answer for {problem_id}")
        return jsonify({'ok': False, 'message': 'Internal error during evaluation.'}), 500
    return jsonify(result)
