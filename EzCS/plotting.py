"""
Plots of target, simulated and selected spectra
"""

# Import python libraries
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.ticker import ScalarFormatter, NullFormatter
from .metrics import sample_moments

SMALL_SIZE = 15
MEDIUM_SIZE = 16
BIG_SIZE = 18
BIGGER_SIZE = 20

plt.rc('font', size=SMALL_SIZE)  # controls default text sizes
plt.rc('axes', titlesize=SMALL_SIZE)  # fontsize of the axes title
plt.rc('axes', labelsize=BIG_SIZE)  # fontsize of the x and y labels
plt.rc('xtick', labelsize=SMALL_SIZE)  # fontsize of the tick labels
plt.rc('ytick', labelsize=SMALL_SIZE)  # fontsize of the tick labels
plt.rc('legend', fontsize=MEDIUM_SIZE)  # legend fontsize
plt.rc('figure', titlesize=BIGGER_SIZE)  # fontsize of the figure title


def _xticks(periods):
    xticks = [periods[0]]
    for x in [0.01, 0.1, 0.2, 0.5, 1, 5, 10]:
        if periods[0] < x < periods[-1]:
            xticks.append(x)
    xticks.append(periods[-1])
    return xticks


def _format_axis(ax, target, ylabel, log_y=True):
    periods = target.periods
    ax.set_xlim([periods[0], periods[-1]])
    ax.set_xticks(_xticks(periods))
    ax.get_xaxis().set_major_formatter(ScalarFormatter())
    ax.get_xaxis().set_minor_formatter(NullFormatter())
    if log_y:
        ax.set_yticks([0.01, 0.1, 0.2, 0.5, 1, 2, 3, 5])
    else:
        ax.set_ylim(bottom=0)
    ax.get_yaxis().set_major_formatter(ScalarFormatter())
    ax.get_yaxis().set_minor_formatter(NullFormatter())
    ax.set_xlabel('Period [sec]')
    ax.set_ylabel(ylabel)
    ax.grid(True)

    # single legend entry per label
    handles, labels = ax.get_legend_handles_labels()
    by_label = dict(zip(labels, handles))
    ax.legend(by_label.values(), by_label.keys(), frameon=False)

    if target.is_conditioned:
        ax.axvspan(target.t_cond * 0.98, target.t_cond * 1.02, facecolor='red', alpha=0.3)


def _plot_target(ax, target, show_variance):
    periods = target.periods
    ax[0].loglog(periods, np.exp(target.mu_ln), color='red', lw=2, label=r'Target - $e^{\mu_{ln}}$')
    if show_variance:
        for sign in (1, -1):
            ax[0].loglog(periods, np.exp(target.mu_ln + sign * 2 * target.sigma_ln), color='red', linestyle='--',
                         lw=2, label=r'Target - $e^{\mu_{ln}\mp 2\sigma_{ln}}$')
        ax[1].semilogx(periods, target.sigma_ln, color='red', linestyle='--', lw=2, label=r'Target - $\sigma_{ln}$')


def plot_target(target):
    """
    Details
    -------
    Plots the target spectrum and its logarithmic standard deviation.

    Parameters
    ----------
    target : EzCS.target.TargetStatistics
        Target spectrum.

    Returns
    -------
    fig : matplotlib.figure.Figure
    """

    show_variance = bool(np.any(target.variance_mask))
    fig, ax = plt.subplots(1, 2, figsize=(16, 8))
    plt.suptitle('Target Spectrum', y=0.95)
    _plot_target(ax, target, show_variance)
    _format_axis(ax[0], target, 'Spectral Acceleration [g]')
    if show_variance:
        _format_axis(ax[1], target, 'Dispersion', log_y=False)

    return fig


def plot_spectra(target, spectra, title='Target Spectrum vs. Spectra of Selected Records'):
    """
    Details
    -------
    Plots a set of spectra (simulated or selected) together with the target spectrum.

    Parameters
    ----------
    target : EzCS.target.TargetStatistics
        Target spectrum.
    spectra : numpy.ndarray (num_records x num_periods)
        Logarithmic spectral accelerations.
    title : str, optional
        Figure title.

    Returns
    -------
    fig : matplotlib.figure.Figure
    """

    periods = target.periods
    mean, std, _ = sample_moments(spectra)
    show_variance = bool(np.any(target.variance_mask))

    fig, ax = plt.subplots(1, 2, figsize=(16, 8))
    plt.suptitle(title, y=0.95)

    for spectrum in spectra:
        ax[0].loglog(periods, np.exp(spectrum), color='gray', lw=1, label='Selected')
    _plot_target(ax, target, show_variance)

    ax[0].loglog(periods, np.exp(mean), color='blue', lw=2, label=r'Selected - $e^{\mu_{ln}}$')
    for sign in (1, -1):
        ax[0].loglog(periods, np.exp(mean + sign * 2 * std), color='blue', linestyle='--', lw=2,
                     label=r'Selected - $e^{\mu_{ln}\mp 2\sigma_{ln}}$')
    ax[1].semilogx(periods, std, color='black', linestyle='--', lw=2, label=r'Selected - $\sigma_{ln}$')

    _format_axis(ax[0], target, 'Spectral Acceleration [g]')
    _format_axis(ax[1], target, 'Dispersion', log_y=False)

    return fig
