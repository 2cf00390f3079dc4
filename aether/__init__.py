"""
Aether - Healthcare Assistant Backend

Sends patient-supplied symptoms, prescriptions and radiology images to a
generative language model and turns its free-text answer into structured,
storage-ready medical guidance.

IMPORTANT: This is NOT a diagnosis tool. It must NEVER replace a doctor.
"""

__version__ = "1.0.0"
__author__ = "Aether Health Team"
