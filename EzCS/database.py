"""
Ground motion record database screening
"""

# Import python libraries
import os
import numpy as np
from scipy import interpolate
from scipy.io import loadmat
from .exceptions import ConfigurationError, PoolExhaustedError

METADATA_KEYS = ('soil_Vs30', 'magnitude', 'Rjb', 'mechanism', 'EQID', 'NGA_num', 'station_code')


class CandidatePool:
    """
    Details
    -------
    Read-only collection of candidate records which satisfy the record selection criteria.

    Parameters
    ----------
    sample_big : numpy.ndarray (2-D)
        Logarithmic spectra of the candidate records at the target periods.
    allowed_index : numpy.ndarray (1-D), optional
        Row of each candidate record in the unfiltered database.
        The default is None, the candidate records are the database itself.
    metadata : dict, optional
        Arrays of record information (filenames, magnitudes etc.) parallel to sample_big.
        The default is None.
    """

    def __init__(self, sample_big, allowed_index=None, metadata=None):
        sample_big = np.array(sample_big, dtype=float)
        if sample_big.ndim != 2:
            raise ValueError('Candidate spectra must be a 2-D array')
        if np.any(~np.isfinite(sample_big)):
            raise ValueError('NaNs found in input response spectra')
        sample_big.setflags(write=False)
        self.sample_big = sample_big
        if allowed_index is None:
            allowed_index = np.arange(sample_big.shape[0])
        self.allowed_index = np.asarray(allowed_index, dtype=int)
        self.metadata = {} if metadata is None else dict(metadata)

    def __len__(self):
        return self.sample_big.shape[0]

    def original_index(self, rec_id):
        """Maps candidate pool indices back to rows of the unfiltered database."""
        return self.allowed_index[np.asarray(rec_id, dtype=int)]

    def record_info(self, rec_id):
        """Metadata of the given candidate records."""
        rec_id = np.asarray(rec_id, dtype=int)
        return {key: np.asarray(values)[rec_id] for key, values in self.metadata.items()}


def load_database(path):
    """
    Details
    -------
    Loads the meta data of a ground motion record database stored as a MATLAB file.

    Parameters
    ----------
    path : str
        Path to the .mat file, e.g. 'Meta_Data/NGA_W2.mat'

    Returns
    -------
    database : dict
        Database contents, the file name is stored in database['Name'].
    """

    database = loadmat(path, squeeze_me=True)
    database['Name'] = os.path.splitext(os.path.basename(path))[0]

    return database


def _spectra_by_definition(database, num_components, spectrum_definition):
    if num_components == 1:  # sa_known is from arbitrary ground motion component
        return np.append(database['Sa_1'], database['Sa_2'], axis=0)

    if spectrum_definition == 'GeoMean':
        return np.sqrt(database['Sa_1'] * database['Sa_2'])
    if spectrum_definition == 'SRSS':
        return np.sqrt(database['Sa_1'] ** 2 + database['Sa_2'] ** 2)
    if spectrum_definition == 'ArithmeticMean':
        return (database['Sa_1'] + database['Sa_2']) / 2
    if spectrum_definition in ('RotD50', 'RotD100'):
        return database['Sa_' + spectrum_definition]
    raise ConfigurationError(f'Unexpected Sa definition {spectrum_definition}')


def _within(values, limits):
    return (values > min(limits)) & (values < max(limits))


def screen_database(database, periods, config):
    """
    Details
    -------
    Searches the database and does the filtering.
    Spectral ordinates are interpolated (log-log) at the target periods.

    Notes
    -----
    If any value in database file is -1, it means that the value is unknown.

    Parameters
    ----------
    database : dict
        Database contents as returned by load_database. Required keys are 'Periods', 'Sa_1', 'Sa_2'
        (or 'Sa_RotD50', 'Sa_RotD100'), 'soil_Vs30', 'magnitude', 'Rjb', 'mechanism', 'Filename_1',
        'Filename_2'; 'EQID', 'NGA_num' and 'station_code' are used if present.
    periods : numpy.ndarray
        Target periods.
    config : EzCS.config.SelectionConfig
        Selection settings (components, spectrum definition and record limits).

    Returns
    -------
    pool : CandidatePool
        Candidate records. For single-component selection both components of a record are candidates,
        and allowed_index refers to the rows of the stacked component arrays.
    """

    sa_known = np.asarray(_spectra_by_definition(database, config.num_components, config.spectrum_definition), dtype=float)
    num_rows = sa_known.shape[0]
    repeat = 2 if config.num_components == 1 else 1

    metadata = {}
    for key in METADATA_KEYS:
        if key in database:
            metadata[key] = np.tile(np.asarray(database[key]), repeat)
    if config.num_components == 1:
        metadata['Filename_1'] = np.append(database['Filename_1'], database['Filename_2'], axis=0)
        metadata['component'] = np.repeat([1, 2], num_rows // 2)
    else:
        metadata['Filename_1'] = np.asarray(database['Filename_1'])
        metadata['Filename_2'] = np.asarray(database['Filename_2'])

    # Limiting the records to be considered, Sa cannot be negative or zero
    allowed = np.all(sa_known > 0, axis=1)
    if config.vs30_limits is not None:
        allowed &= _within(metadata['soil_Vs30'], config.vs30_limits)
    if config.mag_limits is not None:
        allowed &= _within(metadata['magnitude'], config.mag_limits)
    if config.rjb_limits is not None:
        allowed &= _within(metadata['Rjb'], config.rjb_limits)
    if config.mech_limits is not None:
        allowed &= np.isin(metadata['mechanism'], list(config.mech_limits))
    allowed_index = np.where(allowed)[0]

    if len(allowed_index) < config.num_records:
        raise PoolExhaustedError('There are not enough records which satisfy the given record selection criteria. '
                                 'Please broaden your selection criteria.')

    # Arrange the available spectra in a usable format at the target periods
    known_periods = np.asarray(database['Periods'], dtype=float)
    positive = known_periods > 0
    known_periods = known_periods[positive]
    periods = np.asarray(periods, dtype=float)
    if periods.min() < known_periods.min() or periods.max() > known_periods.max():
        raise ConfigurationError('The target periods are outside the period range of the database')
    f = interpolate.interp1d(np.log(known_periods), np.log(sa_known[np.ix_(allowed_index, positive)]), axis=1)
    sample_big = f(np.log(periods))

    metadata = {key: values[allowed_index] for key, values in metadata.items()}

    return CandidatePool(sample_big, allowed_index, metadata)
