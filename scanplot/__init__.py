"""
Eye-tracking scanpath plotting package

- errors.py: Exception hierarchy for configuration, data and export failures
- mapping.py: Tracker-space to image-space coordinate mapping
- encoding.py: Fixation order and duration-to-size encoding
- overlap.py: Label suppression for crowded fixations
- scene.py: Scene composition into drawing primitives
- render.py: Canvas interface, matplotlib backend and scene export
- export.py: Output path templating
- run.py: Per-trial/per-subject pipeline and command-line interface
"""
