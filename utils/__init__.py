"""
Utilities package for text heuristics shared by the classifier and router.
"""

from utils.path_resolver import resolve_path, resolve_reference_path, extract_all_paths
from utils.context_resolver import resolve_anaphor, detect_follow_up
from utils.json_healing import heal_and_parse, HealResult

__all__ = [
    'resolve_path',
    'resolve_reference_path',
    'extract_all_paths',
    'resolve_anaphor',
    'detect_follow_up',
    'heal_and_parse',
    'HealResult',
]
