"""Medical practice document service.

Doctors manage patients, appointments, document templates and generated
documents. Templates come in two formats: legacy text with ``{{variable}}``
placeholders (V1) and structured builder schemas with prefill rules (V2).
"""

__version__ = "0.1.0"
