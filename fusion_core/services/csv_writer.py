import csv
import io

from ..core_types import Detection3D


class CsvWriter:
    HEADER = [
        "frame_time", "frame_id",
        "class", "probability",
        "xmin", "xmax",
        "ymin", "ymax",
        "zmin", "zmax",
    ]

    def __init__(self, csv_path: str):
        self.csv_path = csv_path
        self._opened = False
        self._fh = None
        self._w = None

    def open(self):
        self._fh = open(self.csv_path, "w", newline="")
        self._w = csv.writer(self._fh)
        self._w.writerow(self.HEADER)
        self._opened = True

    @staticmethod
    def _row(frame_time: float, frame_id: str, box: Detection3D) -> list:
        return [
            f"{frame_time:.6f}", frame_id,
            box.label, f"{box.confidence:.4f}",
            box.xmin, box.xmax,
            box.ymin, box.ymax,
            box.zmin, box.zmax,
        ]

    def append(self, frame_time, frame_id, box: Detection3D):
        self._w.writerow(self._row(frame_time, frame_id, box))
        self._fh.flush()

    @classmethod
    def to_csv_line(cls, frame_time, frame_id, box: Detection3D) -> str:
        buf = io.StringIO()
        w = csv.writer(buf)
        w.writerow(cls._row(frame_time, frame_id, box))
        return buf.getvalue().strip()

    def close(self):
        if self._opened and self._fh:
            self._fh.close()
            self._opened = False
            self._fh = None
            self._w = None
