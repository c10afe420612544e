"""
Vocabulary learning core: FSRS scheduling engine and study-session assembly.
"""
