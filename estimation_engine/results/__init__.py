# estimation_engine/results/__init__.py
