# cjs2esm: rewrite CommonJS require()/module.exports into ES module import/export
__version__ = "0.4.0"
