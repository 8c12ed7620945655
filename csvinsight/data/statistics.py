import numpy as np
from typing import Sequence

from ..models.analysis import Statistics


def calculate_statistics(values: Sequence[float]) -> Statistics:
    """
    计算数值列的描述统计 (Descriptive statistics of a numeric column)

    中位数和四分位数直接取排序后数组的下标位置，不做插值：
    median = sorted[n // 2], q1 = sorted[floor(n * 0.25)], q3 = sorted[floor(n * 0.75)].
    For an even-length list the median is the upper middle element, not the
    average of the two middle elements. Variance is the population variance.

    Args:
        values: 非空的有限数值列表 (non-empty list of finite numbers)

    Returns:
        Statistics
    """
    if len(values) == 0:
        raise ValueError("Cannot compute statistics of an empty column")

    data = np.asarray(values, dtype=float)
    ordered = np.sort(data)
    n = len(ordered)

    mean = float(data.mean())
    variance = float(data.var())  # ddof=0
    q1 = float(ordered[int(np.floor(n * 0.25))])
    q3 = float(ordered[int(np.floor(n * 0.75))])

    return Statistics(
        mean=mean,
        median=float(ordered[n // 2]),
        std_dev=float(np.sqrt(variance)),
        variance=variance,
        min=float(data.min()),
        max=float(data.max()),
        q1=q1,
        q3=q3,
        iqr=q3 - q1,
    )
