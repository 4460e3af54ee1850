"""EduCRM: management backend for training centres."""
