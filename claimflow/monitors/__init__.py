# Monitors module - status entry hooks
