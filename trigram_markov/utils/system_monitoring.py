#!/usr/bin/env python3
"""
System Monitoring Module

Utilities for watching the memory and CPU usage of the current process while
a corpus is being trained on and text generated. Used by the command line
pipeline for its `--trace` and `--memprofile` options.
"""

import os
import time
import threading
import psutil
from datetime import datetime


class MemoryManager:
    """
    Reports process memory usage against a configurable limit.
    """

    def __init__(self, logger, memory_limit_mb=None, memory_limit_percentage=85):
        """
        Initialize memory manager with specified limits.

        Args:
            logger: Logger instance for recording memory events
            memory_limit_mb (int, optional): Explicit memory threshold in MB
            memory_limit_percentage (float): Percentage of system memory to use if threshold not specified
        """
        self.logger = logger
        self.memory_limit_percentage = memory_limit_percentage
        self.total_system_memory_mb = psutil.virtual_memory().total / (1024 * 1024)

        if memory_limit_mb:
            self.memory_limit_mb = memory_limit_mb
        else:
            self.memory_limit_mb = int(
                self.total_system_memory_mb * (memory_limit_percentage / 100))

        self.logger.debug("Memory manager initialized", extra={
            "metrics": {
                "total_system_memory_mb": self.total_system_memory_mb,
                "memory_limit_mb": self.memory_limit_mb
            }
        })

    def get_current_memory_usage(self):
        """
        Get current process memory usage.

        Returns:
            dict: Memory usage statistics including current, peak, and percentage usage
        """
        memory_info = psutil.Process(os.getpid()).memory_info()
        current_memory_mb = memory_info.rss / (1024 * 1024)

        # peak is only reported on some platforms
        peak_memory_mb = current_memory_mb
        if hasattr(memory_info, 'peak'):
            peak_memory_mb = memory_info.peak / (1024 * 1024)

        return {
            "current_mb": current_memory_mb,
            "peak_mb": peak_memory_mb,
            "percent_used": (current_memory_mb / self.total_system_memory_mb) * 100,
            "system_percent_used": psutil.virtual_memory().percent,
            "limit_mb": self.memory_limit_mb
        }

    def check_memory_health(self):
        """
        Check if memory usage is within the configured limit.

        Returns:
            tuple: (is_healthy, memory_usage_dict, warning_message)
        """
        memory_usage = self.get_current_memory_usage()
        share_of_limit = memory_usage["current_mb"] / self.memory_limit_mb

        if share_of_limit > 0.95:
            return False, memory_usage, (
                f"DANGER: Memory usage at {memory_usage['current_mb']:.2f} MB, "
                f"{share_of_limit * 100:.1f}% of limit")
        if share_of_limit > 0.9:
            return True, memory_usage, (
                f"WARNING: Memory usage at {memory_usage['current_mb']:.2f} MB, "
                f"{share_of_limit * 100:.1f}% of limit")
        return True, memory_usage, None


class ResourceMonitor:
    """
    Monitors memory and CPU usage of the process.
    Optionally logs usage from a background thread while an operation runs.
    """

    def __init__(self, logger, memory_limit_mb=None, memory_limit_percentage=85,
                 monitoring_interval=10.0):
        """
        Initialize the resource monitor.

        Args:
            logger: Logger instance for recording resource metrics
            memory_limit_mb (int, optional): Explicit memory threshold in MB
            memory_limit_percentage (float): Percentage of system memory to use if threshold not specified
            monitoring_interval (float): Interval in seconds between monitoring checks
        """
        self.logger = logger
        self.monitoring_interval = monitoring_interval
        self.memory_manager = MemoryManager(
            logger=logger,
            memory_limit_mb=memory_limit_mb,
            memory_limit_percentage=memory_limit_percentage
        )

        self.monitoring_thread = None
        self._stop_event = threading.Event()
        self.current_operation = None
        self.operation_start_time = None

    def get_resource_usage(self):
        """
        Get resource usage statistics of the current process.

        Returns:
            dict: Resource usage metrics for CPU, memory and threads
        """
        process = psutil.Process(os.getpid())
        cpu_times = process.cpu_times()

        return {
            "timestamp": datetime.now().isoformat(),
            "memory": self.memory_manager.get_current_memory_usage(),
            "cpu": {
                "user_seconds": cpu_times.user,
                "system_seconds": cpu_times.system,
                "logical_cores": psutil.cpu_count(logical=True)
            },
            "threads": threading.active_count(),
            "process_id": os.getpid()
        }

    def _monitoring_loop(self):
        """
        Periodically logs resource usage until stop() is called.
        """
        while not self._stop_event.wait(self.monitoring_interval):
            resources = self.get_resource_usage()
            _, _, warning = self.memory_manager.check_memory_health()

            if warning:
                self.logger.warning(warning, extra={
                    "metrics": resources,
                    "operation": self.current_operation
                })
            else:
                self.logger.info("Resource usage metrics", extra={
                    "metrics": resources,
                    "operation": self.current_operation
                })

    def start(self, operation_name=None):
        """
        Start resource monitoring in a background thread.

        Args:
            operation_name (str, optional): Name of the operation being monitored
        """
        if self.monitoring_thread and self.monitoring_thread.is_alive():
            return

        self.current_operation = operation_name
        self.operation_start_time = time.time()
        self._stop_event.clear()

        self.monitoring_thread = threading.Thread(
            target=self._monitoring_loop,
            daemon=True
        )
        self.monitoring_thread.start()

        self.logger.info(f"Resource monitoring started for operation: {operation_name}", extra={
            "metrics": self.get_resource_usage(),
            "operation": operation_name
        })

    def stop(self):
        """
        Stop the resource monitoring thread and log final usage.

        Returns:
            float or None: Seconds elapsed since start(), None if never started
        """
        if not self.monitoring_thread:
            return None

        self._stop_event.set()
        if self.monitoring_thread.is_alive():
            self.monitoring_thread.join(timeout=2.0)

        duration = time.time() - self.operation_start_time
        self.logger.info("Resource monitoring stopped", extra={
            "metrics": self.get_resource_usage(),
            "operation": self.current_operation,
            "duration": duration
        })

        self.monitoring_thread = None
        self.current_operation = None
        self.operation_start_time = None
        return duration
