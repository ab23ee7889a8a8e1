"""New-order detection and the multi-channel alert it drives."""

from pyloka.alerts.detector import DetectorState, OrderChangeDetector
from pyloka.alerts.sequencer import AlertSequencer

__all__ = ["AlertSequencer", "DetectorState", "OrderChangeDetector"]
