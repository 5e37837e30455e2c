import os

# The service engine must never download a model during tests.
os.environ.setdefault("OCR_DISABLED", "1")
