
import pandas as pd
import numpy as np
import logging
from typing import List, Tuple

from horizon.orientation import rotation_vector_to_orientation

log = logging.getLogger(__name__)

ORIENTATION_COLUMNS = ['timestamp_ms', 'azimuth', 'pitch', 'roll']


class DataLoader:
    """
    Reads orientation records out of an Android sensor log.

    Log lines are tab separated: <uptime_ms> <TYPE> <values...>
        ROT  rotation vector x, y, z[, w[, accuracy]]
        ORI  azimuth, pitch, roll (rad), already decomposed on the phone
    Everything else (ACC, GYR, MAG, RSSCELL, ...) is skipped.
    """

    def __init__(self, min_rotation_norm: float = 1e-9):
        self.min_rotation_norm = min_rotation_norm

    def load_orientation(self, sensor_log_path: str) -> pd.DataFrame:
        """
        Returns a DataFrame with columns timestamp_ms, azimuth, pitch, roll
        (radians), sorted by timestamp. Empty if the log holds no orientation.
        """
        rot_records, ori_records = self._parse_log_file(sensor_log_path)

        frames = []
        if rot_records:
            frames.append(self._decompose_rotation(rot_records))
        if ori_records:
            frames.append(pd.DataFrame(ori_records, columns=ORIENTATION_COLUMNS))

        if not frames:
            log.warning("No orientation records in %s", sensor_log_path)
            return pd.DataFrame(columns=ORIENTATION_COLUMNS, dtype=float)

        df = pd.concat(frames, ignore_index=True)
        df = df.sort_values('timestamp_ms', kind='stable').reset_index(drop=True)
        log.info("Loaded %d orientation samples from %s (%d ROT, %d ORI)",
                 len(df), sensor_log_path, len(rot_records), len(ori_records))
        return df

    def _parse_log_file(self, path: str) -> Tuple[List[tuple], List[tuple]]:
        rot_records = []
        ori_records = []
        skipped = 0

        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            for line in f:
                parts = line.strip().split('\t')
                if len(parts) < 2:
                    continue
                msg_type = parts[1].strip().upper()
                if msg_type not in ('ROT', 'ORI'):
                    continue
                try:
                    uptime_ms = float(parts[0])
                    values = [float(p) for p in parts[2:]]
                except ValueError:
                    skipped += 1
                    continue
                if not np.all(np.isfinite([uptime_ms] + values)):
                    skipped += 1
                    continue

                if msg_type == 'ROT' and len(values) >= 3:
                    # w is optional on older devices; accuracy (5th) is ignored
                    w = values[3] if len(values) >= 4 else np.nan
                    rot_records.append((uptime_ms, values[0], values[1], values[2], w))
                elif msg_type == 'ORI' and len(values) >= 3:
                    ori_records.append((uptime_ms, values[0], values[1], values[2]))
                else:
                    skipped += 1

        if skipped:
            log.warning("Skipped %d malformed orientation lines in %s", skipped, path)
        return rot_records, ori_records

    def _decompose_rotation(self, rot_records: List[tuple]) -> pd.DataFrame:
        rot_df = pd.DataFrame(rot_records, columns=['timestamp_ms', 'x', 'y', 'z', 'w'])

        # A zero quaternion has no orientation; drop it before scipy sees it
        xyz_norm = np.linalg.norm(rot_df[['x', 'y', 'z']].values, axis=1)
        w = rot_df['w'].values
        w_abs = np.abs(np.where(np.isnan(w), 1.0 - xyz_norm ** 2, w))
        valid = (xyz_norm + w_abs) > self.min_rotation_norm
        if not np.all(valid):
            log.warning("Dropping %d degenerate rotation vectors", int(np.sum(~valid)))
            rot_df = rot_df[valid]

        if rot_df.empty:
            return pd.DataFrame(columns=ORIENTATION_COLUMNS, dtype=float)

        apr = rotation_vector_to_orientation(rot_df[['x', 'y', 'z', 'w']].values)
        return pd.DataFrame({
            'timestamp_ms': rot_df['timestamp_ms'].values,
            'azimuth': apr[:, 0],
            'pitch': apr[:, 1],
            'roll': apr[:, 2],
        })
