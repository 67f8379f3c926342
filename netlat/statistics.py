import click

from netlat.utils import format_time


class latencyStatistics:

    def __init__(self):
        self.count = 0
        self.size = 0

    def add(self, sample):
        delayRT = sample.elapsed_us / 1000.0

        if self.count == 0:
            self.minRT = delayRT
            self.maxRT = delayRT
            self.sumRT = delayRT
            self.jitterRT = 0
        else:
            self.minRT = min(self.minRT, delayRT)
            self.maxRT = max(self.maxRT, delayRT)
            self.sumRT += delayRT

            if self.count == 1:
                self.jitterRT = abs(self.lastRT - delayRT)
            else:
                self.jitterRT = self.jitterRT + \
                    (abs(self.lastRT - delayRT) - self.jitterRT) / 16

        self.lastRT = delayRT
        self.size = sample.size
        self.count += 1

    @property
    def avgRT(self):
        return self.sumRT / self.count

    def dump(self):
        click.echo(
            "===============================================================================")
        click.echo(
            "Direction         Min         Max         Avg          Jitter     Samples")
        click.echo(
            "-------------------------------------------------------------------------------")
        if self.count > 0:
            click.echo("  Roundtrip:   %s  %s  %s  %s    %7d" % (
                format_time(self.minRT),
                format_time(self.maxRT),
                format_time(self.avgRT),
                format_time(self.jitterRT),
                self.count))
            click.echo("  Payload:     %d bytes" % self.size)
        else:
            click.echo("  NO STATS AVAILABLE (no round trip completed)", err=True)
        click.echo(
            "-------------------------------------------------------------------------------")
        click.echo(
            "                                                    Jitter Algorithm [RFC1889]")
        click.echo(
            "===============================================================================")
