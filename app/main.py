import os
from flask import Flask, jsonify
from config.config import config
from app.database import init_db
from app.utils.logger import get_logger

logger = get_logger(__name__)


def create_app(config_name=None):
    """Application factory"""
    config_name = config_name or os.environ.get('FLASK_ENV', 'default')
    
    app = Flask(__name__)
    app.config.from_object(config.get(config_name, config['default']))
    app.json.sort_keys = False
    
    # Register blueprints
    from app.routes import auth, applications, reviews, admin
    app.register_blueprint(auth.bp, url_prefix='/api/auth')
    app.register_blueprint(applications.bp, url_prefix='/api/applications')
    app.register_blueprint(reviews.bp, url_prefix='/api/reviews')
    app.register_blueprint(admin.bp, url_prefix='/api/admin')
    
    @app.route('/api', methods=['GET'])
    def index():
        return jsonify({
            'name': 'JCEP Review API',
            'endpoints': sorted(
                rule.rule for rule in app.url_map.iter_rules() if rule.rule.startswith('/api/')
            )
        }), 200
    
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Not found'}), 404
        
    init_db()
    logger.info(f"Application created with '{config_name}' configuration")
    
    return app
