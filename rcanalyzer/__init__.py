"""RocketChat support dump analyzer."""

__app_name__ = "rcanalyzer"
__version__ = "1.0.0"
