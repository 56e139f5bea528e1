"""
Miscellaneous functions
"""

# Import python libraries
import errno
import os
import shutil
import stat
from time import time


def make_dir(dir_path):
    """
    Details
    -------
    Makes a clean directory by deleting it if it exists.

    Parameters
    ----------
    dir_path : str
        name of directory to make.

    None.
    """

    def handle_remove_read_only(func, path, exc):
        excvalue = exc[1]
        if func in (os.rmdir, os.remove) and excvalue.errno == errno.EACCES:
            os.chmod(path, stat.S_IRWXU | stat.S_IRWXG | stat.S_IRWXO)  # 0777
            func(path)
        else:
            raise OSError(f'{path} is being used at the moment, it cannot be recreated.')

    if os.path.exists(dir_path):
        shutil.rmtree(dir_path, ignore_errors=False, onerror=handle_remove_read_only)
    os.makedirs(dir_path)


def run_time(start_time):
    """
    Details
    -------
    Prints the time passed between start_time and finish_time (now)
    in hours, minutes, seconds.

    Parameters
    ----------
    start_time : float
        The initial time obtained via time().

    Returns
    -------
    elapsed : float
        Elapsed time in seconds.
    """

    elapsed = time() - start_time
    time_hours, remainder = divmod(elapsed, 3600)
    time_minutes, time_seconds = divmod(remainder, 60)
    print(f"Run time: {time_hours:.0f} hours: {time_minutes:.0f} minutes: {time_seconds:.2f} seconds")

    return elapsed
