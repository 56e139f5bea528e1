"""
Conditional spectrum based ground motion record selection toolbox
"""

# Import python libraries
import copy
import os
import pickle
from dataclasses import asdict
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from .config import SelectionConfig
from .database import load_database, screen_database
from .exceptions import SelectionError
from .matching import find_ground_motions
from .metrics import percent_errors, within_tolerance
from .optimization import optimize_ground_motions
from .plotting import plot_spectra, plot_target
from .simulation import simulate_spectra
from .target import compute_target, make_period_grid
from .utility import make_dir

META_DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'Meta_Data')


class ConditionalSpectrum:
    """
    This class is used to
        1) Create target spectrum
            Unconditional spectrum using specified gmpe
            Conditional spectrum using spectral acceleration
            with and without considering variance
        2) Selecting suitable ground motion sets for target spectrum
        3) Writing the selected records and plotting the results

    Parameters
    ----------
    config : EzCS.config.SelectionConfig, optional
        Selection settings.
        The default is SelectionConfig().
    model : object, optional
        Ground motion model, e.g. EzCS.gmm.OpenQuakeModel. Required to create the target.
        The default is None.
    database : str or dict, optional
        Path to the .mat meta data file of the ground motion database, or its loaded contents.
        The default is None, Meta_Data/{config.database}.mat is read when the database is screened.
    pool : EzCS.database.CandidatePool, optional
        Candidate records at the target periods. If given, the database is not screened.
        The default is None.
    output_directory : str, optional.
        output directory to create.
        The default is 'Outputs'
    """

    def __init__(self, config=None, model=None, database=None, pool=None, output_directory='Outputs'):

        self.config = SelectionConfig() if config is None else config
        self.model = model
        if isinstance(database, str):
            database = load_database(database)
        self.database = database
        self.pool = pool

        self.scenario = None
        self.target = None
        self.simulated = None
        self.stage_one = None
        self.selection = None

        # output directory is cleaned once per selection, by the first write or plot
        self._output_is_clean = False
        self.output_directory_path = os.path.join(os.getcwd(), output_directory)

    @property
    def periods(self):
        return None if self.target is None else self.target.periods

    def create(self, scenario):
        """
        Details
        -------
        Creates the target spectrum (conditional or unconditional) for the rupture scenario.

        References
        ----------
        Baker JW. Conditional Mean Spectrum: Tool for Ground-Motion Selection.
        Journal of Structural Engineering 2011; 137(3): 322–331.
        DOI: 10.1061/(ASCE)ST.1943-541X.0000215.

        Parameters
        ----------
        scenario : EzCS.config.RuptureScenario
            Rupture scenario.

        Returns
        -------
        target : EzCS.target.TargetStatistics
        """

        if self.model is None:
            raise SelectionError('A ground motion model is required to create the target spectrum')

        config = self.config
        t_cond = config.t_cond if config.is_conditioned else None
        periods, _ = make_period_grid(config.period_range[0], config.period_range[1], config.num_periods, t_cond)

        self.scenario = scenario
        self.target = compute_target(periods, scenario, self.model, t_cond, config.use_variance)
        print('Target spectrum is created.')

        return self.target

    def select(self):
        """
        Details
        -------
        Perform the ground motion selection.

        References
        ----------
        Jayaram, N., Lin, T., and Baker, J. W. (2011).
        A computationally efficient ground-motion selection algorithm for
        matching a target response spectrum mean and variance.
        Earthquake Spectra, 27(3), 797-815.

        Returns
        -------
        selection : EzCS.matching.Selection
            Selected records, rec_id values are candidate pool indices.
            Database indices of the records are stored in self.rec_id.
        """

        if self.target is None:
            raise SelectionError('The target spectrum must be created before the selection')
        config = self.config
        target = self.target

        # Simulate response spectra
        self.simulated = simulate_spectra(target, config.num_records, config.num_simulations, config.seed_value,
                                          config.error_weights, config.sampling, config.correlation_weight)

        # Search the database and filter
        if self.pool is None:
            if self.database is None:
                matfile = os.path.join(META_DATA_DIR, self.config.database + '.mat')
                if not os.path.isfile(matfile):
                    raise SelectionError(f'Either a database or a candidate pool must be provided, {matfile} is not found')
                self.database = load_database(matfile)
            self.pool = screen_database(self.database, target.periods, config)
        elif self.pool.sample_big.shape[1] != len(target.periods):
            raise SelectionError('Candidate spectra are not defined at the target periods')

        # Find best matches to the simulated spectra from ground-motion database
        selection = find_ground_motions(self.simulated, self.pool, target, config.is_scaled, config.max_scale_factor)
        median_error, std_error = percent_errors(selection.sample, target)
        self.stage_one = {'rec_id': self.pool.original_index(selection.rec_id),
                          'scale_factors': selection.scale_factors.copy(),
                          'means': selection.means, 'stds': selection.stds,
                          'median_error': median_error, 'std_error': std_error}
        print('Initial selection of ground motions is finished.')
        print(f'Max error in median = {median_error:.2f} %')
        print(f'Max error in standard deviation = {std_error:.2f} %')

        # Apply greedy subset modification procedure
        if config.num_greedy_loops > 0:
            reference = None if target.is_conditioned else self.simulated
            optimize_ground_motions(target, selection, self.pool, config, reference)
            median_error, std_error = percent_errors(selection.sample, target)

        print('Ground motion selection is finished.')
        print(f'For T ∈ [{target.periods[0]:.2f} - {target.periods[-1]:.2f}]')
        print(f'Max error in median = {median_error:.2f} %')
        print(f'Max error in standard deviation = {std_error:.2f} %')
        if within_tolerance(median_error, std_error, config.tolerance):
            print(f'The errors are within the target {config.tolerance:g} percent %')

        # Add selected record information to self
        self.selection = selection
        self.rec_id = self.pool.original_index(selection.rec_id)
        self.rec_scale_factors = selection.scale_factors
        self.rec_sa_ln = selection.sample
        self.rec_info = self.pool.record_info(selection.rec_id)
        self.median_error = median_error
        self.std_error = std_error
        self._output_is_clean = False

        return selection

    def records_table(self):
        """
        Details
        -------
        Table of the selected records: database index, scale factor and record information.

        Returns
        -------
        table : pandas.DataFrame
        """

        if self.selection is None:
            raise SelectionError('No records are selected yet')

        table = pd.DataFrame({'Record ID': self.rec_id, 'Scale Factor': self.rec_scale_factors})
        for key, values in self.rec_info.items():
            table[key] = values
        return table

    def _prepare_output_directory(self):
        # files written or saved after the same selection are kept
        if self._output_is_clean:
            os.makedirs(self.output_directory_path, exist_ok=True)
        else:
            make_dir(self.output_directory_path)
            self._output_is_clean = True

    def write(self, object=0, records=1):
        """
        Details
        -------
        Writes the object as pickle, selected records and scale factors as .txt files.
        The output directory is cleaned by the first write or saved plot after each selection.

        Parameters
        ----------
        object : int, optional
            flag to write the object into the pickle file.
            The default is 0.
        records : int, optional
            flag to write the selected record information and scaling factors.
            The default is 1.

        Notes
        -----
        0: no, 1: yes

        Returns
        -------
        None.
        """

        self._prepare_output_directory()

        if records == 1:
            table = self.records_table()
            table.to_csv(os.path.join(self.output_directory_path, 'GMR_selection.csv'), index=False)
            # Scale factors
            np.savetxt(os.path.join(self.output_directory_path, 'GMR_sf_used.txt'),
                       np.array([self.rec_scale_factors]).T, fmt='%1.5f')
            # Record file names
            if 'Filename_2' in table:
                table['Filename_1'].to_csv(os.path.join(self.output_directory_path, 'GMR_H1_names.txt'),
                                           index=False, header=False)
                table['Filename_2'].to_csv(os.path.join(self.output_directory_path, 'GMR_H2_names.txt'),
                                           index=False, header=False)
            elif 'Filename_1' in table:
                table['Filename_1'].to_csv(os.path.join(self.output_directory_path, 'GMR_names.txt'),
                                           index=False, header=False)

        if object == 1:
            # save some info as pickle obj
            exclude = ('model', 'database', 'output_directory_path', '_output_is_clean')
            object = copy.deepcopy({key: value for key, value in vars(self).items() if key not in exclude})
            object['config'] = asdict(self.config)
            if self.database is not None:
                object['database'] = self.database.get('Name')

            with open(os.path.join(self.output_directory_path, 'obj.pkl'), 'wb') as file:
                pickle.dump(object, file)

        print(f"Finished writing process, the files are located in\n{self.output_directory_path}")

    def plot(self, target=0, simulations=0, records=1, save=0, show=1):
        """
        Details
        -------
        Plots the spectra of selected and simulated records,
        and/or target spectrum.

        Parameters
        ----------
        target : int, optional
            Flag to plot target spectrum.
            The default is 0.
        simulations : int, optional
            Flag to plot simulated response spectra vs. target spectrum.
            The default is 0.
        records : int, optional
            Flag to plot Selected response spectra of selected records
            vs. target spectrum.
            The default is 1.
        save : int, optional
            Flag to save plotted figures in pdf format.
            The default is 0.
        show : int, optional
            Flag to show figures
            The default is 1.

        Notes
        -----
        0: no, 1: yes

        Returns
        -------
        figures : dict
            Created figures by name.
        """

        plt.ioff()

        figures = {}
        if target == 1:
            figures['Targeted'] = plot_target(self.target)
        if simulations == 1 and self.simulated is not None:
            figures['Simulated'] = plot_spectra(self.target, self.simulated.spectra,
                                                'Target Spectrum vs. Simulated Spectra')
        if records == 1 and self.selection is not None:
            figures['Selected'] = plot_spectra(self.target, self.selection.sample)

        if save == 1:
            self._prepare_output_directory()
            for name, fig in figures.items():
                fig.savefig(os.path.join(self.output_directory_path, name + '.pdf'))

        # Show the figure
        if show == 1:
            plt.show()

        plt.close('all')

        return figures
