####################################################
# Conditional Spectrum (CS) Based Record Selection #
####################################################

from time import time
from EzCS.config import RuptureScenario, SelectionConfig
from EzCS.gmm import OpenQuakeModel, check_gmpe_attributes
from EzCS.selection import ConditionalSpectrum
from EzCS.utility import run_time

# A) IM = Sa(T1) Database = NGA_W2
# --------------------------------
start_time = time()

# A.1) Selection settings, check which parameters are required for the gmpe you are using.
check_gmpe_attributes(gmpe='BooreEtAl2014')
config = SelectionConfig(database='NGA_W2', is_conditioned=True, spectrum_definition='RotD50', num_records=25,
                         t_cond=0.5, period_range=(0.1, 4.0), is_scaled=True, max_scale_factor=4,
                         num_simulations=20, error_weights=(1, 2, 0.3), seed_value=0, num_greedy_loops=2,
                         penalty=1, tolerance=10, mag_limits=(5.5, 8), vs30_limits=(360, 760), rjb_limits=(0, 50))

# A.2) Initialize the ConditionalSpectrum object, the meta data file of config.database is read from EzCS/Meta_Data folder
model = OpenQuakeModel(gmpe='BooreEtAl2014', correlation_model='baker_jayaram', spectrum_definition='RotD50')
cs = ConditionalSpectrum(config=config, model=model, output_directory='Outputs_A')

# A.3) Create target spectrum
scenario = RuptureScenario(magnitude=7.0, distance=10.0, vs30=500.0, fault_type=1, epsilon=2.0)
cs.create(scenario)

# Target spectrum can be plotted at this stage
cs.plot(target=1, simulations=0, records=0, save=0, show=1)

# A.4) Select the ground motions
cs.select()

# The simulated spectra and spectra of selected records can be plotted at this stage
cs.plot(target=0, simulations=1, records=1, save=0, show=1)

# A.5) Write the object itself, selected record information and scale factors
cs.write(object=1, records=1)

# Calculate the total time passed
run_time(start_time)

# B) Unconditional selection, single component, KS test based optimization
# -------------------------------------------------------------------------
start_time = time()

config = SelectionConfig(database='NGA_W2', is_conditioned=False, spectrum_definition='Arbitrary', num_records=20,
                         period_range=(0.1, 4.0), is_scaled=True, max_scale_factor=2.5, opt_type='KS',
                         seed_value=0, num_greedy_loops=2, n_jobs=4, mag_limits=(6, 8), rjb_limits=(0, 40))
model = OpenQuakeModel(gmpe='BooreEtAl2014', spectrum_definition='Arbitrary')
cs = ConditionalSpectrum(config=config, model=model, output_directory='Outputs_B')
cs.create(RuptureScenario(magnitude=6.5, distance=20.0, vs30=400.0, fault_type=3))
cs.select()
cs.plot(target=1, simulations=1, records=1, save=1, show=0)
cs.write(object=1, records=1)

run_time(start_time)
