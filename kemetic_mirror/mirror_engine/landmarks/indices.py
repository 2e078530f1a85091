# kemetic_mirror/mirror_engine/landmarks/indices.py
"""Canonical FaceMesh indices used by the overlay geometry."""

FOREHEAD_TOP = 10
CHIN = 152
LEFT_CHEEK = 234
RIGHT_CHEEK = 454
LEFT_TEMPLE = 127
RIGHT_TEMPLE = 356

# Contours start at the inner corner and go around; index 3 is the outer corner
# after mirroring.
LEFT_EYE_CONTOUR = (33, 160, 158, 133, 153, 144)
RIGHT_EYE_CONTOUR = (362, 385, 387, 263, 373, 380)
EYE_CORNER_POSITION = 3

FACE_MESH_POINTS = 468
FACE_MESH_REFINED_POINTS = 478
