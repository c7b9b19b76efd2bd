from flask import Blueprint, jsonify

from signaling import router

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Signaling server is running'})

@main.route('/status')
def status():
    return jsonify(router.status())
